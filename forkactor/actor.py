"""
Job handlers: the operations the message bus can call.

Every handler follows the same shape. The parent hands the executor a
closure; inside the forked child the closure builds a fresh node, installs a
TeeCapture as the backend logger's only destination, performs the domain
action and returns a JSON-encodable mapping. The parent gets that mapping
back, or a DomainFailure / WorkerError.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import contextmanager
import logging
import sys
import tempfile
from typing import Any, Callable, Dict, Optional

from .config import PASSTHROUGH
from .errors import (
    DomainFailure,
    InvalidLogLevel,
    PayloadError,
    UnknownOperation,
    WorkerError,
)
from .executor import IsolatedExecutor
from .logging import setLevel
from .plugins import Plugins
from .stream import streamFactory
from .tee import STDOUT, capture_log
from .utils import asText, utcNow

LOG = logging.getLogger(__name__)

EXPOSED = ("collection", "resource", "recipe", "converge")
RECIPE_PREFIX = "test-recipe-"
_FROM_CONFIG = object()


def _requireMapping(payload, operation) -> Mapping:
    if not isinstance(payload, Mapping):
        raise PayloadError("{} payload must be a mapping, not {}".format(
            operation, type(payload).__name__))
    return payload


def _recipeText(payload) -> str:
    text = asText(payload)
    if not isinstance(text, str):
        raise PayloadError("recipe payload must be text, not {}".format(
            type(payload).__name__))
    return text


@contextmanager
def recipeFile(text, scratchDir=None):
    """Write ``text`` to a temporary recipe script; removed on exit."""
    with tempfile.NamedTemporaryFile(mode="w", encoding="utf-8", prefix=RECIPE_PREFIX,
                                     suffix=".py", dir=scratchDir) as tmpf:
        tmpf.write(text)
        tmpf.flush()
        yield tmpf.name


def errorResponse(error: Exception) -> Dict[str, Any]:
    if isinstance(error, DomainFailure):
        return {"error": {
            "class": "domain",
            "kind": error.kind,
            "module": error.module,
            "message": error.message,
            "traceback": error.remoteTraceback,
            "log": error.log,
        }}
    return {"error": {
        "class": "worker",
        "kind": type(error).__name__,
        "message": str(error),
        "retryable": getattr(error, "retryable", False),
        "pid": getattr(error, "pid", None),
        "exit_status": getattr(error, "exitStatus", None),
        "signal": getattr(error, "signal", None),
    }}


class ConfigActor(object):
    # pylint: disable=too-many-instance-attributes
    """
    Configuration-management operations, each run in its own child process.

    ``backend`` defaults to whatever the installed plugins provide (the
    built-in backend otherwise). ``on_log`` receives every captured chunk as
    it is written, inside the child; when it is not given and the rc file
    names a stream url, chunks are POSTed there.
    """

    def __init__(self, backend=None, executor: Optional[IsolatedExecutor] = None,
                 config=None, on_log: Optional[Callable[[str], None]] = None,
                 passthrough=_FROM_CONFIG, plugins: Optional[Plugins] = None,
                 nodeName: Optional[str] = None):
        if backend is None or nodeName is None:
            plugins = plugins or Plugins()
            if backend is None:
                backend = plugins.backend()
            if nodeName is None:
                nodeName = plugins.nodeName()
        self.backend = backend
        self.nodeName = nodeName
        self.config = config
        if executor is None:
            executor = IsolatedExecutor(timeout=config.timeout if config else None)
        self.executor = executor
        self._onLog = on_log
        self._streamFactory = streamFactory(config) if config and on_log is None else None
        if passthrough is _FROM_CONFIG:
            passthrough = self._configPassthrough()
        self._passthrough = passthrough

    def _configPassthrough(self):
        setting = self.config.passthrough if self.config else PASSTHROUGH.defaultVal
        if setting == PASSTHROUGH.NONE:
            return None
        if setting == PASSTHROUGH.STDERR:
            return sys.stderr
        return STDOUT

    @property
    def logLevel(self):
        return self.config.logLevel if self.config else "info"

    @property
    def runList(self):
        return self.config.runList if self.config else []

    @property
    def scratchDir(self):
        return self.config.scratchDir if self.config else None

    def _capture(self, operation, level=None):
        onLog = self._onLog
        if onLog is None and self._streamFactory is not None:
            onLog = self._streamFactory(operation)
        return capture_log(self.backend.logger, level=level,
                           passthrough=self._passthrough, on_write=onLog)

    def _buildNode(self):
        client = self.backend.Client(node_name=self.nodeName)
        return client, client.build_node()

    def _execute(self, operation, job):
        start = utcNow()
        LOG.info("%s: starting", operation)
        try:
            result = self.executor.run(job)
        except DomainFailure as failure:
            LOG.info("%s: failed with %s", operation, failure)
            raise
        except WorkerError as error:
            LOG.error("%s: worker error: %s", operation, error)
            raise
        LOG.info("%s: finished in %.3fs", operation,
                 (utcNow() - start).total_seconds())
        return result

    def collection(self, payload):
        backend = self.backend

        def job():
            specs = _requireMapping(payload, "collection").get("resources")
            if not isinstance(specs, (list, tuple)):
                raise PayloadError("collection payload needs a 'resources' list")
            _, node = self._buildNode()
            with self._capture("collection", level=self.logLevel) as sink:
                resources = backend.ResourceCollection(
                    backend.build_resource(spec, node) for spec in specs)
                backend.Runner(node, resources).converge()
            return {"log": sink.results()}

        result = self._execute("collection", job)
        # The caller's own reference, not a round-tripped copy.
        result["resource"] = payload.get("resource")
        return result

    def resource(self, payload):
        backend = self.backend

        def job():
            spec = _requireMapping(payload, "resource").get("resource")
            if not isinstance(spec, Mapping):
                raise PayloadError("resource payload needs a 'resource' mapping")
            _, node = self._buildNode()
            with self._capture("resource", level="debug") as sink:
                resource = backend.build_resource(spec, node)
                resource.run_action(resource.action)
            return {"log": sink.results(), "resource": resource}

        return self._execute("resource", job)

    def check_recipe(self, payload):
        """Compile a recipe without converging it; not exposed on the bus."""
        backend = self.backend

        def job():
            text = _recipeText(payload)
            _, node = self._buildNode()
            with self._capture("check_recipe", level="debug"):
                with recipeFile(text, self.scratchDir) as path:
                    recipe = backend.Recipe("temp", "recipe", node)
                    recipe.from_file(path)
            return {"resources": list(recipe.collection)}

        return self._execute("check_recipe", job)

    def recipe(self, payload):
        backend = self.backend

        def job():
            text = _recipeText(payload)
            with recipeFile(text, self.scratchDir) as path:
                with self._capture("recipe", level="info") as sink:
                    _, node = self._buildNode()
                    recipe = backend.Recipe("temp", "recipe", node)
                    recipe.from_file(path)
                    backend.Runner(node, recipe.collection).converge()
            return {"log": sink.results(), "resources": recipe.collection}

        return self._execute("recipe", job)

    def converge(self, payload=None):
        backend = self.backend

        def job():
            if payload is not None:
                _requireMapping(payload, "converge")
            with self._capture("converge", level=self.logLevel) as sink:
                requested = payload.get("log_level") if payload else None
                if requested:
                    try:
                        setLevel(backend.logger, requested)
                    except InvalidLogLevel:
                        LOG.debug("ignoring log level %r", requested)
                backend.Client(run_list=self.runList, node_name=self.nodeName).run()
            return {"log": sink.results()}

        return self._execute("converge", job)

    def dispatch(self, operation, payload):
        """Bus entry point: the handler's mapping, or an error mapping."""
        if operation not in EXPOSED:
            raise UnknownOperation("{!r} is not an exposed operation".format(operation))
        try:
            return getattr(self, operation)(payload)
        except (DomainFailure, WorkerError) as error:
            return errorResponse(error)
