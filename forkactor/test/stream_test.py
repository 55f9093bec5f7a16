import tempfile
from unittest import TestCase

from mock import MagicMock, patch
import requests

from forkactor import stream

from .helpers import makeConfig

# pylint: disable-msg=protected-access


@patch("forkactor.stream.requests", new=MagicMock(requests))
class LogStreamTest(TestCase):
    def testChunksArePostedInOrder(self):
        retMock = MagicMock(['status_code'])
        retMock.status_code = 204
        stream.requests.post = MagicMock(return_value=retMock)

        logStream = stream.LogStream("https://logs.example.com/s", "recipe", timeout=2)
        logStream("first\n")
        logStream("second\n")

        self.assertEqual(2, stream.requests.post.call_count)
        for seq, (call, chunk) in enumerate(zip(stream.requests.post.call_args_list,
                                                ["first\n", "second\n"])):
            args, kwargs = call
            self.assertEqual(("https://logs.example.com/s",), args)
            self.assertEqual(2, kwargs["timeout"])
            self.assertEqual(seq, kwargs["json"]["seq"])
            self.assertEqual(chunk, kwargs["json"]["chunk"])
            self.assertEqual("recipe", kwargs["json"]["operation"])

    def testErrorStatusRaises(self):
        retMock = MagicMock(['status_code'])
        retMock.status_code = 503
        stream.requests.post = MagicMock(return_value=retMock)

        logStream = stream.LogStream("https://logs.example.com/s", "converge")
        with self.assertRaisesRegex(stream.PostError, "answered 503 for chunk 0"):
            logStream("lost\n")


class StreamFactoryTest(TestCase):
    def testNoUrlNoStream(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertIsNone(stream.streamFactory(makeConfig(tmpdir)))

    def testFactoryUsesConfig(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg = makeConfig(tmpdir, "[stream]\nurl = https://x.example.com\ntimeout = 3\n")
            logStream = stream.streamFactory(cfg)("resource")
        self.assertEqual("https://x.example.com", logStream.uri)
        self.assertEqual("resource", logStream.operation)
        self.assertEqual(3.0, logStream.timeout)
