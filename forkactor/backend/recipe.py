import logging

from .resources import RESOURCE_TYPES, ResourceCollection

LOG = logging.getLogger(__name__)


class Recipe(object):
    """
    A recipe is a Python script evaluated with one declaration function per
    resource type in scope (``log``, ``file``, ``directory``, ``block``) and
    the ``node`` it is being compiled for. Declarations are appended to
    ``collection`` in script order; nothing runs until a Runner converges
    the collection.
    """

    def __init__(self, cookbook_name, recipe_name, node, collection=None):
        self.cookbook_name = cookbook_name
        self.recipe_name = recipe_name
        self.node = node
        self.collection = collection if collection is not None else ResourceCollection()

    def __str__(self):
        return "{}::{}".format(self.cookbook_name, self.recipe_name)

    def _declarer(self, cls):
        def declare(name, action=None, **attrs):
            resource = cls(name, self.node, action=action, **attrs)
            self.collection.insert(resource)
            return resource
        declare.__name__ = cls.resource_type
        return declare

    def namespace(self):
        scope = {
            "__name__": "recipe:{}".format(self),
            "node": self.node,
            "cookbook_name": self.cookbook_name,
            "recipe_name": self.recipe_name,
        }
        for rtype, cls in RESOURCE_TYPES.items():
            scope[rtype] = self._declarer(cls)
        return scope

    def from_string(self, source, filename="<recipe>"):
        code = compile(source, filename, "exec")
        exec(code, self.namespace())  # pylint: disable=exec-used
        LOG.debug("recipe %s declared %d resources", self, len(self.collection))
        return self.collection

    def from_file(self, path):
        LOG.debug("loading recipe %s from %s", self, path)
        with open(path, encoding="utf-8") as fp:
            source = fp.read()
        return self.from_string(source, filename=path)
