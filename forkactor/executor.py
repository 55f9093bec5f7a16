"""
Run a job in a forked child and bring its outcome back.

The child owns everything the job touches: logging handlers it installs,
files it opens, processes it forks. The parent only ever sees one framed
outcome on a pipe (see forkactor.outcome) and the child's exit status.
"""

from __future__ import annotations

import errno
import logging
import os
import select
import signal
import sys
import time
from typing import Any, Callable, Optional, Tuple

from .errors import AbnormalTermination, ExecutionTimeout
from .outcome import (
    HEADER,
    MAGIC,
    Failure,
    IncompleteFrame,
    Outcome,
    Success,
    decodeOutcome,
    encodeSafely,
)

LOG = logging.getLogger(__name__)

READ_SIZE = 65536
# Exit status of a child that could not hand its outcome to the parent.
EXIT_WRITE_FAILED = 70

Job = Callable[[], Any]


def _runChild(job: Job, writeFd: int):
    """Child side. Never returns."""
    code = 0
    try:
        try:
            outcome: Outcome = Success(job())
        except BaseException as err:  # pylint: disable=broad-except
            outcome = Failure.fromException(err)
        data = encodeSafely(outcome)
        with os.fdopen(writeFd, 'wb') as pipe:
            pipe.write(data)
    except BaseException:  # pylint: disable=broad-except
        code = EXIT_WRITE_FAILED
    finally:
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError):
                pass
        # Skip atexit and inherited cleanup; those belong to the parent.
        os._exit(code)  # pylint: disable=protected-access


def _exitDetails(status: int) -> Tuple[Optional[int], Optional[int]]:
    if os.WIFSIGNALED(status):
        return None, os.WTERMSIG(status)
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status), None
    return None, None


def reap(pid: int) -> int:
    while True:
        try:
            _, status = os.waitpid(pid, 0)
            return status
        except ChildProcessError:
            LOG.warning("child %d already reaped", pid)
            return 0
        except OSError as err:
            if err.errno != errno.EINTR:
                raise


def killChild(pid: int):
    try:
        os.kill(pid, signal.SIGKILL)
    except OSError as err:
        if err.errno == errno.ESRCH:
            # no such process -> it's done!
            return
        raise


class IsolatedExecutor(object):
    """
    Fork-per-job executor.

    With ``timeout=None`` (the default) the parent waits for the child
    indefinitely. With a timeout, a child that has not written its complete
    result in time is killed with SIGKILL and ExecutionTimeout is raised.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def _readFrame(self, readFd: int, pid: int) -> bytes:
        """Read the header, then exactly the payload length it announces.

        EOF only ends the read early, when the child died mid-frame. Children
        forked meanwhile by other threads hold copies of the write end, so
        EOF may come long after a complete frame.
        """
        data = bytearray()
        wanted = HEADER.size
        haveHeader = False
        deadline = None
        if self.timeout is not None:
            deadline = time.monotonic() + self.timeout
        while len(data) < wanted:
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ExecutionTimeout(pid, self.timeout)
                ready, _, _ = select.select([readFd], [], [], remaining)
                if not ready:
                    continue
            chunk = os.read(readFd, min(READ_SIZE, wanted - len(data)))
            if not chunk:
                break
            data += chunk
            if not haveHeader and len(data) == HEADER.size:
                haveHeader = True
                magic, length = HEADER.unpack_from(data)
                if magic != MAGIC:
                    break
                wanted += length
        return bytes(data)

    def outcome(self, job: Job) -> Outcome:
        """Run ``job`` in a child and return its Success or Failure.

        Raises AbnormalTermination (or ExecutionTimeout) when the child dies
        without a complete result and CorruptResult when the result does not
        decode.
        """
        readFd, writeFd = os.pipe()
        try:
            pid = os.fork()
        except OSError:
            os.close(readFd)
            os.close(writeFd)
            raise
        if pid == 0:
            os.close(readFd)
            _runChild(job, writeFd)
        os.close(writeFd)
        LOG.debug("forked child %d", pid)

        data = b""
        status = None
        try:
            data = self._readFrame(readFd, pid)
        except ExecutionTimeout as timedOut:
            LOG.warning("child %d timed out after %ss, killing", pid, self.timeout)
            killChild(pid)
            status = reap(pid)
            exitStatus, sig = _exitDetails(status)
            raise ExecutionTimeout(pid, self.timeout, exitStatus=exitStatus,
                                   signal=sig) from timedOut
        finally:
            os.close(readFd)
            if status is None:
                status = reap(pid)

        exitStatus, sig = _exitDetails(status)
        LOG.debug("child %d finished, status %r signal %r, %d bytes",
                  pid, exitStatus, sig, len(data))
        if not data:
            raise AbnormalTermination(pid, exitStatus=exitStatus, signal=sig,
                                      detail="no result written")
        try:
            result = decodeOutcome(data)
        except IncompleteFrame as err:
            raise AbnormalTermination(pid, exitStatus=exitStatus, signal=sig,
                                      detail=str(err)) from err
        if exitStatus != 0:
            LOG.info("child %d sent a complete result but ended with "
                     "status %r signal %r", pid, exitStatus, sig)
        return result

    def run(self, job: Job):
        """Return what ``job`` returned, or raise DomainFailure."""
        return self.outcome(job).unwrap()


def insideFork(job: Job, timeout: Optional[float] = None):
    return IsolatedExecutor(timeout=timeout).run(job)
