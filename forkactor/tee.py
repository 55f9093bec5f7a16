"""
Tee sink for domain log capture.

Every chunk written to a TeeCapture goes, in order, to the pass-through
stream, to the in-memory buffer, and to the optional ``on_write`` callback.
The callback runs synchronously on the writer's thread; a slow callback
stalls the job that is logging.
"""

from __future__ import annotations

from contextlib import contextmanager
import io
import logging
import sys
from typing import Callable, Iterator, Optional, TextIO

from .logging import resolveLevel

LOG = logging.getLogger(__name__)

CLOSED_MARKER = "--- LOG CLOSED"
DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"

STDOUT = object()


class TeeCapture(object):
    def __init__(self, passthrough=STDOUT,
                 on_write: Optional[Callable[[str], None]] = None):
        if passthrough is STDOUT:
            passthrough = sys.stdout
        self._passthrough: Optional[TextIO] = passthrough
        self._buffer = io.StringIO()
        self._onWrite = on_write
        self._closed = False
        self.callback_errors = 0

    @property
    def closed(self):
        return self._closed

    def write(self, chunk):
        if self._passthrough is not None:
            try:
                self._passthrough.write(chunk)
            except (OSError, ValueError):
                LOG.debug("pass-through write failed, chunk kept", exc_info=1)
        self._buffer.write(chunk)
        if self._onWrite is not None:
            try:
                self._onWrite(chunk)
            except Exception:  # pylint: disable=broad-except
                self.callback_errors += 1
                LOG.warning("log callback %r failed on a %d character chunk",
                            self._onWrite, len(chunk), exc_info=1)
        return len(chunk)

    def flush(self):
        if self._passthrough is None:
            return
        try:
            self._passthrough.flush()
        except (OSError, ValueError):
            LOG.debug("pass-through flush failed", exc_info=1)

    def close(self):
        if self._closed:
            return
        self.write(CLOSED_MARKER)
        self.flush()
        self._closed = True

    def results(self):
        return self._buffer.getvalue()


@contextmanager
def capture_log(logger: logging.Logger, level=None, passthrough=STDOUT,
                on_write: Optional[Callable[[str], None]] = None,
                formatter: Optional[logging.Formatter] = None
                ) -> Iterator[TeeCapture]:
    """Make a fresh TeeCapture the only destination of ``logger``.

    The logger's handlers, level and propagation are put back on exit, and
    the sink is closed. If the body raises, whatever was captured so far is
    attached to the exception as ``captured_log``.
    """
    newLevel = resolveLevel(level) if level is not None else None
    sink = TeeCapture(passthrough=passthrough, on_write=on_write)
    handler = logging.StreamHandler(sink)
    handler.setFormatter(formatter or logging.Formatter(DEFAULT_FORMAT))

    savedHandlers = list(logger.handlers)
    savedLevel = logger.level
    savedPropagate = logger.propagate
    for old in savedHandlers:
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.propagate = False
    if newLevel is not None:
        logger.setLevel(newLevel)
    try:
        yield sink
    except BaseException as err:
        sink.close()
        try:
            err.captured_log = sink.results()
        except AttributeError:
            LOG.debug("cannot attach log to %r", err)
        raise
    finally:
        sink.close()
        logger.removeHandler(handler)
        handler.close()
        for old in savedHandlers:
            logger.addHandler(old)
        logger.setLevel(savedLevel)
        logger.propagate = savedPropagate
