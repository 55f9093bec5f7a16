import logging
import os
import tempfile
import unittest

import pytest

from forkactor.errors import InvalidLogLevel
from forkactor.logging import resolveLevel, setLevel, setup


class TestLoggingSetup(unittest.TestCase):
    def setUp(self):
        self.saved = logging.root.handlers[:], logging.root.level
        logging.root.handlers = []
        logging.root.setLevel(logging.WARNING)

    def tearDown(self):
        for handler in logging.root.handlers:
            handler.close()
        logging.root.handlers, level = self.saved
        logging.root.setLevel(level)

    def test_setup_no_debug(self):
        """Without debug the root logger reports errors on stderr"""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup(tmpdir, "test-debug", debug=False)
            self.assertEqual(logging.ERROR, logging.root.level)
            self.assertTrue(
                any(type(h) is logging.StreamHandler for h in logging.root.handlers))

    def test_setup_debug_true(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            setup(tmpdir, "test-debug", debug=True)
            self.assertEqual(logging.DEBUG, logging.root.level)
            self.assertTrue(
                any(isinstance(h, logging.FileHandler) for h in logging.root.handlers))
            self.assertTrue(os.path.exists(os.path.join(tmpdir, "test-debug.log")))

    def test_setup_debug_with_custom_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            custom_log = os.path.join(tmpdir, "custom-debug.log")
            setup(tmpdir, "default-debug", debug=custom_log)
            logging.getLogger("forkactor.test").debug("into the custom file")
            for handler in logging.root.handlers:
                handler.flush()
            with open(custom_log) as fp:
                self.assertIn("into the custom file", fp.read())
            self.assertFalse(os.path.exists(os.path.join(tmpdir, "default-debug.log")))


@pytest.mark.parametrize("name, level", [
    ("debug", logging.DEBUG),
    ("INFO", logging.INFO),
    (" warn ", logging.WARNING),
    ("fatal", logging.CRITICAL),
    (logging.ERROR, logging.ERROR),
])
def testResolveLevel(name, level):
    assert resolveLevel(name) == level


@pytest.mark.parametrize("name", ["chatty", "", None, True, 15, ["info"]])
def testResolveLevelRejects(name):
    with pytest.raises(InvalidLogLevel) as caught:
        resolveLevel(name)
    assert caught.value.level == name


def testSetLevel():
    logger = logging.getLogger("forkactor.test.setlevel")
    assert setLevel(logger, "error") == logging.ERROR
    assert logger.level == logging.ERROR
    with pytest.raises(InvalidLogLevel):
        setLevel(logger, "loud")
    assert logger.level == logging.ERROR
