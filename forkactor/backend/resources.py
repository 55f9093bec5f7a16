"""
Resource types for the built-in backend.

A resource is one named piece of desired state with a set of actions. The
node a resource acts for is a constructor argument; nothing reaches into a
resource afterwards to attach it.
"""

import logging
import os
import shutil
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from ..logging import resolveLevel

LOG = logging.getLogger(__name__)


class ResourceError(ValueError):
    pass


class Resource(object):
    resource_type = "resource"
    actions = ("nothing",)
    default_action = "nothing"
    # attribute name -> default value
    attribute_defaults: Dict[str, Any] = {}
    # attributes left out of for_json()
    private_attributes = ()

    def __init__(self, name: str, node, action: Optional[str] = None, **attrs):
        if not name or not isinstance(name, str):
            raise ResourceError("{} needs a name".format(self.resource_type))
        unknown = set(attrs) - set(self.attribute_defaults)
        if unknown:
            raise ResourceError("{}[{}] has no attribute(s) {}".format(
                self.resource_type, name, ", ".join(sorted(unknown))))
        self.name = name
        self.node = node
        self.action = action or self.default_action
        self._checkAction(self.action)
        self.attributes = dict(self.attribute_defaults)
        self.attributes.update(attrs)
        self.updated = False

    def __str__(self):
        return "{}[{}]".format(self.resource_type, self.name)

    def __repr__(self):
        return "<{} action={}>".format(self, self.action)

    def __getattr__(self, attr):
        attributes = self.__dict__.get("attributes")
        if attributes is not None and attr in attributes:
            return attributes[attr]
        raise AttributeError(attr)

    def _checkAction(self, action):
        if action not in self.actions:
            raise ResourceError("{} has no action {!r} (valid: {})".format(
                self, action, ", ".join(self.actions)))

    def run_action(self, action: str):
        self._checkAction(action)
        LOG.debug("%s running action %s", self, action)
        getattr(self, "action_" + action)()
        return self.updated

    def action_nothing(self):
        LOG.debug("%s did nothing", self)

    def for_json(self):
        out = {
            "type": self.resource_type,
            "name": self.name,
            "action": self.action,
            "updated": self.updated,
        }
        for key, value in self.attributes.items():
            if key not in self.private_attributes:
                out[key] = value
        return out


class LogResource(Resource):
    resource_type = "log"
    actions = ("write", "nothing")
    default_action = "write"
    attribute_defaults = {"message": None, "level": "info"}

    def action_write(self):
        level = resolveLevel(self.level)
        LOG.log(level, self.message if self.message is not None else self.name)
        self.updated = True


class FileResource(Resource):
    resource_type = "file"
    actions = ("create", "create_if_missing", "delete", "touch", "nothing")
    default_action = "create"
    attribute_defaults = {"path": None, "content": None, "mode": None}

    @property
    def path(self):
        return self.attributes.get("path") or self.name

    def _setMode(self):
        if self.mode is None:
            return
        mode = int(self.mode, 8) if isinstance(self.mode, str) else int(self.mode)
        current = os.stat(self.path).st_mode & 0o7777
        if current != mode:
            os.chmod(self.path, mode)
            LOG.info("%s changed mode from %o to %o", self, current, mode)
            self.updated = True

    def action_create(self):
        exists = os.path.isfile(self.path)
        if self.content is not None:
            current = None
            if exists:
                with open(self.path, encoding="utf-8") as fp:
                    current = fp.read()
            if current != self.content:
                with open(self.path, "w", encoding="utf-8") as fp:
                    fp.write(self.content)
                LOG.info("%s %s", self, "updated content" if exists else "created file")
                self.updated = True
        elif not exists:
            open(self.path, "a", encoding="utf-8").close()
            LOG.info("%s created file", self)
            self.updated = True
        self._setMode()

    def action_create_if_missing(self):
        if os.path.exists(self.path):
            LOG.debug("%s exists, skipping", self)
            return
        self.action_create()

    def action_delete(self):
        if os.path.exists(self.path):
            os.remove(self.path)
            LOG.info("%s deleted file", self)
            self.updated = True

    def action_touch(self):
        self.action_create()
        os.utime(self.path, None)
        LOG.info("%s updated access and modification times", self)
        self.updated = True


class DirectoryResource(Resource):
    resource_type = "directory"
    actions = ("create", "delete", "nothing")
    default_action = "create"
    attribute_defaults = {"path": None, "recursive": False}

    @property
    def path(self):
        return self.attributes.get("path") or self.name

    def action_create(self):
        if os.path.isdir(self.path):
            return
        if self.recursive:
            os.makedirs(self.path)
        else:
            os.mkdir(self.path)
        LOG.info("%s created directory", self)
        self.updated = True

    def action_delete(self):
        if not os.path.isdir(self.path):
            return
        if self.recursive:
            shutil.rmtree(self.path)
        else:
            os.rmdir(self.path)
        LOG.info("%s deleted directory", self)
        self.updated = True


class BlockResource(Resource):
    """Runs an arbitrary callable; only useful in-process."""

    resource_type = "block"
    actions = ("run", "nothing")
    default_action = "run"
    attribute_defaults = {"block": None}
    private_attributes = ("block",)

    def action_run(self):
        block: Optional[Callable[[], Any]] = self.block
        if block is None:
            raise ResourceError("{} has no block to run".format(self))
        block()
        LOG.info("%s called", self)
        self.updated = True


RESOURCE_TYPES = {
    cls.resource_type: cls
    for cls in (LogResource, FileResource, DirectoryResource, BlockResource)
}


def build_resource(spec: Mapping[str, Any], node) -> Resource:
    """Build a resource for ``node`` from ``{"type", "name", "action", ...}``."""
    if not isinstance(spec, Mapping):
        raise ResourceError("resource spec must be a mapping, not {}".format(
            type(spec).__name__))
    attrs = dict(spec)
    rtype = attrs.pop("type", None)
    cls = RESOURCE_TYPES.get(rtype)
    if cls is None:
        raise ResourceError("unknown resource type {!r}".format(rtype))
    name = attrs.pop("name", None)
    action = attrs.pop("action", None)
    attrs.pop("updated", None)
    return cls(name, node, action=action, **attrs)


class ResourceCollection(object):
    def __init__(self, resources=()):
        self._resources: List[Resource] = []
        for resource in resources:
            self.insert(resource)

    def insert(self, resource: Resource):
        if not isinstance(resource, Resource):
            raise ResourceError("not a resource: {!r}".format(resource))
        self._resources.append(resource)

    def extend(self, other):
        for resource in other:
            self.insert(resource)

    def lookup(self, key: str) -> Resource:
        for resource in self._resources:
            if str(resource) == key:
                return resource
        raise KeyError(key)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def __len__(self):
        return len(self._resources)

    def __getitem__(self, index):
        return self._resources[index]

    def for_json(self):
        return [resource.for_json() for resource in self._resources]
