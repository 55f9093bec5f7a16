import logging
import os
import time
from typing import Iterable, Optional

from .node import buildNode
from .recipe import Recipe
from .resources import ResourceCollection
from .runner import Runner

LOG = logging.getLogger(__name__)


class Client(object):
    """
    Drives a full run: build the node, compile every recipe on the run list
    into one collection, converge it.

    Run list entries are paths to recipe scripts; the cookbook name is the
    script's directory name and the recipe name is its base name.
    """

    def __init__(self, run_list: Iterable[str] = (), node_name: Optional[str] = None):
        self.run_list = list(run_list)
        self.node_name = node_name
        self.node = None

    def build_node(self):
        self.node = buildNode(self.node_name, self.run_list)
        LOG.debug("built node %s", self.node.name)
        return self.node

    def compile(self):
        collection = ResourceCollection()
        for path in self.run_list:
            path = os.path.expanduser(path)
            cookbook = os.path.basename(os.path.dirname(os.path.abspath(path)))
            name = os.path.splitext(os.path.basename(path))[0]
            Recipe(cookbook, name, self.node, collection).from_file(path)
        return collection

    def run(self):
        start = time.monotonic()
        if self.node is None:
            self.build_node()
        LOG.info("Starting client run on %s", self.node.name)
        if not self.run_list:
            LOG.warning("Run list is empty, nothing to converge")
        collection = self.compile()
        Runner(self.node, collection).converge()
        LOG.info("Client run finished in %.3fs", time.monotonic() - start)
        return collection
