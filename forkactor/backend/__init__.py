"""
Built-in configuration-management backend.

A small, headless collaborator for the worker: nodes describe the local
host, resources are plain Python objects with named actions, and recipes are
Python scripts that declare resources. Everything it logs goes through
``logger`` (and its children), which is what the worker captures.
"""

import logging

logger = logging.getLogger(__name__)

# pylint: disable=wrong-import-position
from .client import Client  # noqa: E402
from .node import Node, buildNode  # noqa: E402
from .recipe import Recipe  # noqa: E402
from .resources import (  # noqa: E402
    RESOURCE_TYPES,
    Resource,
    ResourceCollection,
    ResourceError,
    build_resource,
)
from .runner import Runner  # noqa: E402

__all__ = [
    "Client",
    "Node",
    "RESOURCE_TYPES",
    "Recipe",
    "Resource",
    "ResourceCollection",
    "ResourceError",
    "Runner",
    "buildNode",
    "build_resource",
    "logger",
]
