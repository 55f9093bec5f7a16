"""
Tagged execution outcome and its wire framing.

A child process reports exactly one outcome to its parent, as one frame:

    +------+----------------+----------------------+
    | FAO1 | length (u64be) | UTF-8 JSON, length B |
    +------+----------------+----------------------+

The JSON body is either ``{"tag": "success", "value": ...}`` or
``{"tag": "failure", "kind": ..., "module": ..., "message": ...,
"traceback": ..., "log": ...}``. Values are encoded with simplejson's
``for_json`` protocol, so domain objects only need a ``for_json()`` method.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct
import traceback
from typing import Any, Optional, Union

import simplejson

from .errors import CorruptResult, DomainFailure

MAGIC = b"FAO1"
HEADER = struct.Struct(">4sQ")

TAG_SUCCESS = "success"
TAG_FAILURE = "failure"


class IncompleteFrame(Exception):
    """Fewer bytes arrived than the frame needs; the writer never finished."""


@dataclass
class Success:
    value: Any

    tag = TAG_SUCCESS

    def unwrap(self):
        return self.value

    def for_json(self):
        return {"tag": self.tag, "value": self.value}


@dataclass
class Failure:
    kind: str
    message: str
    module: Optional[str] = None
    traceback: Optional[str] = None
    log: Optional[str] = None

    tag = TAG_FAILURE

    @classmethod
    def fromException(cls, err: BaseException) -> "Failure":
        try:
            message = str(err)
        except Exception:  # pylint: disable=broad-except
            message = repr(err)
        tbText = "".join(
            traceback.format_exception(type(err), err, err.__traceback__))
        log = getattr(err, "captured_log", None)
        return cls(
            kind=type(err).__name__,
            message=message,
            module=type(err).__module__,
            traceback=tbText,
            log=log if isinstance(log, str) else None,
        )

    def toError(self) -> DomainFailure:
        return DomainFailure(self.kind, self.message, module=self.module,
                             remoteTraceback=self.traceback, log=self.log)

    def unwrap(self):
        raise self.toError()

    def for_json(self):
        return {
            "tag": self.tag,
            "kind": self.kind,
            "module": self.module,
            "message": self.message,
            "traceback": self.traceback,
            "log": self.log,
        }


Outcome = Union[Success, Failure]


def frame(payload: bytes) -> bytes:
    return HEADER.pack(MAGIC, len(payload)) + payload


def unframe(data: bytes) -> bytes:
    if len(data) < HEADER.size:
        raise IncompleteFrame("{} of {} header bytes".format(len(data), HEADER.size))
    magic, length = HEADER.unpack_from(data)
    if magic != MAGIC:
        raise CorruptResult("bad frame header {!r}".format(magic))
    body = data[HEADER.size:]
    if len(body) < length:
        raise IncompleteFrame("{} of {} payload bytes".format(len(body), length))
    if len(body) > length:
        raise CorruptResult("{} trailing bytes after frame".format(len(body) - length))
    return body


def encodeOutcome(outcome: Outcome) -> bytes:
    """Frame an outcome. Raises TypeError if the value is not encodable."""
    body = simplejson.dumps(outcome, for_json=True)
    return frame(body.encode("utf-8"))


def encodeSafely(outcome: Outcome) -> bytes:
    try:
        return encodeOutcome(outcome)
    except (TypeError, ValueError) as err:
        failure = Failure.fromException(err)
        failure.message = "job result could not be encoded: {}".format(failure.message)
        if isinstance(outcome, Failure):
            failure.log = outcome.log
        return encodeOutcome(failure)


def decodeOutcome(data: bytes) -> Outcome:
    """Decode one frame. Raises IncompleteFrame or CorruptResult."""
    body = unframe(data)
    try:
        decoded = simplejson.loads(body.decode("utf-8"))
    except ValueError as err:
        raise CorruptResult("undecodable result payload: {}".format(err)) from err
    if not isinstance(decoded, dict):
        raise CorruptResult("result payload is not a mapping")
    tag = decoded.get("tag")
    if tag == TAG_SUCCESS:
        if "value" not in decoded:
            raise CorruptResult("success result without a value")
        return Success(decoded["value"])
    if tag == TAG_FAILURE:
        kind = decoded.get("kind")
        if not isinstance(kind, str):
            raise CorruptResult("failure result without a kind")
        return Failure(
            kind=kind,
            message=str(decoded.get("message", "")),
            module=decoded.get("module"),
            traceback=decoded.get("traceback"),
            log=decoded.get("log"),
        )
    raise CorruptResult("unknown result tag {!r}".format(tag))
