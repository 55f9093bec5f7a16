import logging
import time

LOG = logging.getLogger(__name__)


class Runner(object):
    def __init__(self, node, collection):
        self.node = node
        self.collection = collection

    def converge(self):
        """Run every resource's declared action, in order.

        The first resource to fail stops the run; the error propagates.
        """
        start = time.monotonic()
        LOG.info("Converging %d resources on %s", len(self.collection), self.node.name)
        updated = 0
        for resource in self.collection:
            LOG.info("Processing %s action %s", resource, resource.action)
            try:
                if resource.run_action(resource.action):
                    updated += 1
            except Exception as err:
                LOG.error("%s (%s) had an error: %s", resource, resource.action, err)
                raise
        LOG.info("Converged %d resources (%d updated) in %.3fs",
                 len(self.collection), updated, time.monotonic() - start)
        return self.collection
