#!/usr/bin/env python
import argparse
import os
import sys

import simplejson

import forkactor.logging

from .actor import EXPOSED, ConfigActor, errorResponse
from .argparse import addArgumentParserBaseFlags
from .binutils import binDescriptionWithStandardFooter
from .config import Config, ConfigError
from .errors import DomainFailure, PayloadError, WorkerError
from .plugins import Plugins
from .utils import sprint

DESC = binDescriptionWithStandardFooter("""
forkactor - run one configuration-management operation in an isolated child

Operations:
    collection   {"resources": [...], "resource": ...}
    resource     {"resource": {"type": ..., "name": ..., "action": ...}}
    recipe       recipe script text (give the script itself with --raw)
    converge     {"log_level": "debug"} or nothing
    check_recipe recipe script text; compile only, nothing converges

The payload is read from FILE, or standard input when FILE is - or omitted.
The JSON response goes to standard output. Exit status is 0 on success, 1 when
the job failed and 2 when the worker itself failed or the payload is not
valid JSON.
""")

_DEBUG_LOG_FILE_NAME = "forkactor-debug"
LOG = forkactor.logging.getLogger(__name__)

OK = 0
DOMAIN_ERROR = 1
WORKER_ERROR = 2
BAD_REQUEST = 2


def parseArgs(args=None):
    if args is None:
        prog = sys.argv[0]
        args = sys.argv[1:]
    else:
        prog = None

    # pylint: disable=invalid-name
    ap = argparse.ArgumentParser(
        prog=os.path.basename(prog) if prog else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=DESC)
    addArgumentParserBaseFlags(ap, _DEBUG_LOG_FILE_NAME)
    ap.add_argument("--raw", action="store_true",
                    help="Payload is plain text (a recipe script), not JSON")
    ap.add_argument("--quiet", "-q", action="store_true",
                    help="Do not echo the job's log while it runs")
    ap.add_argument("operation", choices=list(EXPOSED) + ["check_recipe"])
    ap.add_argument("payload", metavar="FILE", nargs="?", default="-")
    return ap.parse_args(args)


def readPayload(path, raw):
    if path == "-":
        text = sys.stdin.read()
    else:
        with open(path, encoding="utf-8") as payloadFile:
            text = payloadFile.read()
    if raw:
        return text
    if not text.strip():
        return None
    try:
        return simplejson.loads(text)
    except simplejson.JSONDecodeError as err:
        raise PayloadError("payload is not valid JSON: {}".format(err)) from err


def impl_main(args=None):
    options = parseArgs(args)
    config = Config(options)
    forkactor.logging.setup(
        config.logDir,
        _DEBUG_LOG_FILE_NAME,
        debug=options.debug)
    LOG.debug("starting with args %s", options)
    LOG.debug("python: %s", sys.version)

    try:
        payload = readPayload(options.payload, options.raw)
    except PayloadError as error:
        sprint(simplejson.dumps({"error": {
            "class": "request",
            "kind": type(error).__name__,
            "message": str(error),
        }}, indent=2, sort_keys=True))
        return BAD_REQUEST
    # The response owns stdout; job log echo goes to stderr.
    passthrough = None if options.quiet else sys.stderr
    actor = ConfigActor(config=config, passthrough=passthrough, plugins=Plugins())

    if options.operation == "check_recipe":
        try:
            response = actor.check_recipe(payload)
        except (DomainFailure, WorkerError) as error:
            response = errorResponse(error)
    else:
        response = actor.dispatch(options.operation, payload)

    sprint(simplejson.dumps(response, for_json=True, indent=2, sort_keys=True))
    error = response.get("error") if isinstance(response, dict) else None
    if error is None:
        return OK
    if error["class"] == "domain":
        return DOMAIN_ERROR
    return WORKER_ERROR


def main(args=None):
    try:
        return impl_main(args=args)
    except ConfigError as error:
        print("Error:", error, file=sys.stderr)
        return WORKER_ERROR


if __name__ == '__main__':
    sys.exit(main())
