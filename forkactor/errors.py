"""
Error taxonomy for isolated job execution.

DomainFailure is the only error a bus caller can act on (a bad recipe, a bad
resource). WorkerError and its subclasses mean the worker itself went wrong:
the child died, hung, or sent back garbage.
"""

from typing import Optional


class ForkActorError(Exception):
    pass


class PayloadError(ForkActorError, ValueError):
    """A request payload is missing fields or has the wrong shape."""


class UnknownOperation(ForkActorError):
    pass


class InvalidLogLevel(ForkActorError, ValueError):
    def __init__(self, level):
        super().__init__("invalid log level {!r}".format(level))
        self.level = level


class DomainFailure(ForkActorError):
    """The job raised inside the child; rebuilt in the parent."""

    def __init__(self, kind: str, message: str, module: Optional[str] = None,
                 remoteTraceback: Optional[str] = None,
                 log: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.module = module
        self.message = message
        self.remoteTraceback = remoteTraceback
        self.log = log

    @property
    def qualifiedKind(self) -> str:
        if self.module and self.module != 'builtins':
            return "{}.{}".format(self.module, self.kind)
        return self.kind

    def __str__(self):
        return "{}: {}".format(self.kind, self.message)


class WorkerError(ForkActorError):
    retryable = False


class AbnormalTermination(WorkerError):
    """The child exited without producing a complete result."""

    def __init__(self, pid: int, exitStatus: Optional[int] = None,
                 signal: Optional[int] = None, detail: str = ""):
        self.pid = pid
        self.exitStatus = exitStatus
        self.signal = signal
        if signal is not None:
            how = "killed by signal {}".format(signal)
        else:
            how = "exited with status {}".format(exitStatus)
        msg = "worker child {} {}".format(pid, how)
        if detail:
            msg += " ({})".format(detail)
        super().__init__(msg)


class ExecutionTimeout(AbnormalTermination):
    def __init__(self, pid: int, timeout: float, exitStatus=None, signal=None):
        self.timeout = timeout
        super().__init__(pid, exitStatus=exitStatus, signal=signal,
                         detail="no result after {}s".format(timeout))


class CorruptResult(WorkerError):
    """The child wrote a complete frame that does not decode to an outcome."""
