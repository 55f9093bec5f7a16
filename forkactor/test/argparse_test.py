import argparse
import os
import unittest

from forkactor.argparse import addArgumentParserBaseFlags


def parser():
    parser = argparse.ArgumentParser()
    addArgumentParserBaseFlags(parser, "test-log")
    return parser


class TestDebugArgument(unittest.TestCase):
    def test_debug_flag_no_argument(self):
        """--debug without an argument means the default log file"""
        args = parser().parse_args(["--debug"])
        self.assertIs(True, args.debug)

    def test_debug_flag_with_file(self):
        args = parser().parse_args(["--debug", "/tmp/my-debug.log"])
        self.assertEqual("/tmp/my-debug.log", args.debug)

    def test_no_debug_flag(self):
        args = parser().parse_args([])
        self.assertFalse(args.debug)


class TestBaseFlags(unittest.TestCase):
    def test_state_dir_and_rc_file(self):
        args = parser().parse_args(["-d", "/srv/state", "--rc-file", "/etc/forkactorrc"])
        self.assertEqual("/srv/state", args.stateDir)
        self.assertEqual("/etc/forkactorrc", args.rcFile)

    def test_state_dir_from_environment(self):
        old = os.environ.get("FORKACTOR_STATE_DIR")
        os.environ["FORKACTOR_STATE_DIR"] = "/var/lib/forkactor"
        try:
            args = parser().parse_args([])
        finally:
            if old is None:
                del os.environ["FORKACTOR_STATE_DIR"]
            else:
                os.environ["FORKACTOR_STATE_DIR"] = old
        self.assertEqual("/var/lib/forkactor", args.stateDir)
