import datetime
import logging

import chardet
import dateutil.tz

LOG = logging.getLogger(__name__)


def strForEach(value):
    try:
        return str(value)
    except (UnicodeDecodeError, UnicodeEncodeError):
        LOG.debug("%r", value, exc_info=1)
        return '{!r}'.format(value)


def sprint(*args, **kwargs):
    """sprint: "safe" print - ignore IOError"""
    try:
        print(*list(map(strForEach, args)), **kwargs)
    except IOError:
        LOG.debug("sprint ignore IOError", exc_info=1)
    except (UnicodeEncodeError, UnicodeDecodeError):
        print('codec error', repr(args))
        LOG.debug("%r", args, exc_info=1)
    except BaseException:
        LOG.debug("sprint caught error", exc_info=1)
        raise


def utcNow():
    return datetime.datetime.now(dateutil.tz.tzutc())


def isoNow():
    return utcNow().isoformat()


def autoDecode(byteArray):
    detected = chardet.detect(byteArray)
    encoding = detected['encoding']
    if encoding is None or detected['confidence'] < 0.5:  # very arbitrary
        encoding = 'utf-8'
    return byteArray.decode(encoding)


def asText(value):
    """Recipe payloads may arrive as bytes off the wire."""
    if isinstance(value, (bytes, bytearray)):
        return autoDecode(bytes(value))
    return value
