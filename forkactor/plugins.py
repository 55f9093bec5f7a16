"""
This module implements the plugin contract.

Plugin modules need to be registered using the forkactor.plugins entrypoint.
Modules that are registered as such can implement any of the functions:

    def priority():
        return {"backend": 100, "nodeName": 10}

    def backend():
        # Return a module (or object) providing the backend interface:
        # logger, Client, Runner, Recipe, ResourceCollection, build_resource
        import mycm.forkactor_backend
        return mycm.forkactor_backend

    def nodeName():
        return "web-01.example.com"

All of these functions are optional. If the plugin cannot provide a sensible value
for the current execution then it should raise NotImplementedError so that the next
plugin at a possibly lower priority will get called instead.
"""
import logging
from importlib import metadata
from operator import attrgetter
import socket
from typing import List

logger = logging.getLogger(__name__)
PRIO_LOWEST = 1 << 31
PRIO_HIGHEST = 0
PLUGIN_GROUP = "forkactor.plugins"

BACKEND_INTERFACE = (
    "logger",
    "Client",
    "Runner",
    "Recipe",
    "ResourceCollection",
    "build_resource",
)


class BackendError(Exception):
    pass


def gethostname() -> str:
    return socket.gethostname()


def entryPoints(group: str) -> List[metadata.EntryPoint]:
    eps = metadata.entry_points()
    if hasattr(eps, "select"):
        return list(eps.select(group=group))
    return list(eps.get(group, []))


def checkBackend(backend):
    missing = [name for name in BACKEND_INTERFACE if not hasattr(backend, name)]
    if missing:
        raise BackendError("backend {!r} is missing {}".format(
            getattr(backend, "__name__", backend), ", ".join(missing)))
    return backend


class Plugins(object):
    def __init__(self):
        plugins = {plug.load() for plug in entryPoints(PLUGIN_GROUP)}
        self.plugins = list(sorted(plugins, key=attrgetter("__name__")))
        logger.debug("all plugins: %r", [p.__name__ for p in self.plugins])
        self._prio = {}
        for plugin in self.plugins:
            if hasattr(plugin, "priority"):
                self._prio[plugin.__name__] = plugin.priority()

    def _pluginCalls(self, func, *args, **kwargs):
        prio = {}
        for plugin in self.plugins:
            if hasattr(plugin, func):
                pluginPrioMap = self._prio.get(plugin.__name__, {})
                pval = pluginPrioMap.get(func, pluginPrioMap.get("", PRIO_LOWEST))
                prio.setdefault(pval, []).append(plugin)

        if not prio:
            return

        for prio, plugins in sorted(prio.items()):
            for plugin in plugins:
                name = plugin.__name__
                try:
                    result = getattr(plugin, func)(*args, **kwargs)
                    logger.debug("%r: yield plugin %s => %r", prio, name, result)
                    yield result
                except NotImplementedError:
                    logger.debug("%r: plugin %s NotImplementedError", prio, name)
                    continue

    def backend(self):
        for ret in self._pluginCalls("backend"):
            if ret is not None:
                return checkBackend(ret)
        logger.debug("using the built-in backend")
        import forkactor.backend  # pylint: disable=import-outside-toplevel
        return forkactor.backend

    def nodeName(self) -> str:
        for ret in self._pluginCalls("nodeName"):
            if ret:
                return ret
        logger.debug("using gethostname as fallback for nodeName")
        return gethostname()
