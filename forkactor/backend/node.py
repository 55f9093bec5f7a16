import platform
import socket
import sys
from typing import Any, Dict, Iterable, Optional

from ..utils import isoNow


def collectAttributes() -> Dict[str, Any]:
    uname = platform.uname()
    return {
        "hostname": socket.gethostname(),
        "fqdn": socket.getfqdn(),
        "os": uname.system.lower(),
        "os_version": uname.release,
        "machine": uname.machine,
        "platform": platform.platform(),
        "python": sys.version.split()[0],
        "collected_at": isoNow(),
    }


class Node(object):
    def __init__(self, name: str, attributes: Optional[Dict[str, Any]] = None,
                 run_list: Iterable[str] = ()):
        self.name = name
        self.attributes = dict(attributes or {})
        self.run_list = list(run_list)

    def __getitem__(self, key):
        return self.attributes[key]

    def __contains__(self, key):
        return key in self.attributes

    def get(self, key, default=None):
        return self.attributes.get(key, default)

    def __repr__(self):
        return "<Node {}>".format(self.name)

    def for_json(self):
        return {
            "name": self.name,
            "attributes": self.attributes,
            "run_list": self.run_list,
        }


def buildNode(name: Optional[str] = None, run_list: Iterable[str] = ()) -> Node:
    attributes = collectAttributes()
    return Node(name or attributes["hostname"], attributes, run_list)
