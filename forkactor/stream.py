"""
Incremental log streaming over HTTP.

A LogStream is handed to TeeCapture as its ``on_write`` callback. Every
chunk the job logs is POSTed as JSON to the configured URL while the job is
still running. Posting is synchronous and bounded by ``timeout``; a stream
endpoint that is down costs at most one timeout per chunk.
"""

import logging
import os

import requests

LOG = logging.getLogger(__name__)


class PostError(Exception):
    pass


def _postChunk(uri, payload, timeout):
    headers = {
        'Content-Type': 'application/json; charset=UTF-8',
    }
    ret = requests.post(uri, json=payload, headers=headers, timeout=timeout)
    if ret.status_code >= 400:
        raise PostError("{} answered {} for chunk {}".format(
            uri, ret.status_code, payload['seq']))
    return ret


class LogStream(object):
    def __init__(self, uri, operation, timeout=5.0):
        self.uri = uri
        self.operation = operation
        self.timeout = timeout
        self._seq = 0

    def __repr__(self):
        return "<LogStream {} {}>".format(self.operation, self.uri)

    def __call__(self, chunk):
        payload = {
            'operation': self.operation,
            'pid': os.getpid(),
            'seq': self._seq,
            'chunk': chunk,
        }
        self._seq += 1
        _postChunk(self.uri, payload, self.timeout)
        LOG.debug("streamed chunk %d (%d chars)", payload['seq'], len(chunk))


def streamFactory(config):
    """Return ``operation -> LogStream`` for the rc file's [stream] url, or None."""
    if not config.streamUrl:
        return None

    def _factory(operation):
        return LogStream(config.streamUrl, operation, timeout=config.streamTimeout)
    return _factory
