import logging
import os
import sys

from .errors import InvalidLogLevel

LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'fatal': logging.CRITICAL,
    'critical': logging.CRITICAL,
}


def getLogger(name):
    return logging.getLogger(name)


def setup(logDir, debugLogFileName, debug=False):
    fmt = (
        '+%(process)-6d %(levelname)-9s '
        '%(name)-20s %(filename)20s:%(lineno)-5d '
        '[%(asctime)s] %(message)s')
    if debug:
        if isinstance(debug, str):
            logFileName = os.path.expanduser(debug)
        else:
            logFileName = os.path.join(logDir, debugLogFileName + ".log")
        logging.basicConfig(
            filename=logFileName,
            level=logging.DEBUG,
            format=fmt)
    else:
        logging.basicConfig(stream=sys.stderr, level=logging.ERROR, format=fmt)


def resolveLevel(name):
    """Map a caller-supplied level name to a logging level.

    Raises InvalidLogLevel for anything that is not a known name.
    """
    if isinstance(name, int) and not isinstance(name, bool):
        if name in LEVELS.values():
            return name
    elif isinstance(name, str) and name.strip().lower() in LEVELS:
        return LEVELS[name.strip().lower()]
    raise InvalidLogLevel(name)


def setLevel(logger, name):
    level = resolveLevel(name)
    logger.setLevel(level)
    return level
