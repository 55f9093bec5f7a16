import os
import re
import shutil
import tempfile
import unittest

import pytest

from forkactor import backend
from forkactor.backend import (
    Client,
    Node,
    Recipe,
    ResourceCollection,
    ResourceError,
    Runner,
    build_resource,
)
from forkactor.errors import InvalidLogLevel
from forkactor.tee import capture_log

NODE = Node("test-node", {"hostname": "test-node"})


def captured(level="debug"):
    return capture_log(backend.logger, level=level, passthrough=None)


@pytest.mark.parametrize("spec, message", [
    ({"type": "package", "name": "vim"}, "unknown resource type 'package'"),
    ({"type": "log"}, "log needs a name"),
    ({"type": "file", "name": "/x", "action": "explode"}, "no action 'explode'"),
    ({"type": "file", "name": "/x", "owner": "root"}, "no attribute(s) owner"),
    (["file", "/x"], "must be a mapping"),
])
def testBadSpecs(spec, message):
    with pytest.raises(ResourceError, match=re.escape(message)):
        build_resource(spec, NODE)


def testSpecRoundTrip():
    spec = {"type": "file", "name": "/etc/motd", "action": "create",
            "content": "hello", "mode": "0644"}
    resource = build_resource(spec, NODE)
    assert resource.node is NODE
    assert str(resource) == "file[/etc/motd]"
    assert resource.for_json() == {
        "type": "file", "name": "/etc/motd", "action": "create", "updated": False,
        "path": None, "content": "hello", "mode": "0644",
    }
    assert build_resource(resource.for_json(), NODE).for_json() == resource.for_json()


class TestFileResource(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, "motd")

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def file(self, action, **attrs):
        return build_resource(
            dict(type="file", name=self.path, action=action, **attrs), NODE)

    def testCreateWithContentThenIdempotent(self):
        first = self.file("create", content="hi\n", mode="0600")
        with captured() as sink:
            self.assertTrue(first.run_action("create"))
        with open(self.path) as fp:
            self.assertEqual("hi\n", fp.read())
        self.assertEqual(0o600, os.stat(self.path).st_mode & 0o7777)
        self.assertIn("created file", sink.results())

        second = self.file("create", content="hi\n", mode="0600")
        self.assertFalse(second.run_action("create"))

    def testCreateIfMissingLeavesContent(self):
        with open(self.path, "w") as fp:
            fp.write("original")
        resource = self.file("create_if_missing", content="replacement")
        self.assertFalse(resource.run_action("create_if_missing"))
        with open(self.path) as fp:
            self.assertEqual("original", fp.read())

    def testDelete(self):
        open(self.path, "w").close()
        self.assertTrue(self.file("delete").run_action("delete"))
        self.assertFalse(os.path.exists(self.path))
        self.assertFalse(self.file("delete").run_action("delete"))

    def testDirectory(self):
        nested = os.path.join(self.tmpdir, "a", "b")
        resource = build_resource(
            {"type": "directory", "name": nested, "recursive": True}, NODE)
        self.assertTrue(resource.run_action("create"))
        self.assertTrue(os.path.isdir(nested))
        remove = build_resource(
            {"type": "directory", "name": os.path.join(self.tmpdir, "a"),
             "action": "delete", "recursive": True}, NODE)
        self.assertTrue(remove.run_action("delete"))
        self.assertFalse(os.path.exists(nested))


def testLogResourceLevels():
    with captured(level="info") as sink:
        build_resource({"type": "log", "name": "shown"}, NODE).run_action("write")
        build_resource({"type": "log", "name": "hidden", "level": "debug"},
                       NODE).run_action("write")
        build_resource({"type": "log", "name": "x", "message": "custom message",
                        "level": "warn"}, NODE).run_action("write")
    log = sink.results()
    assert "INFO: shown" in log
    assert "hidden" not in log
    assert "WARNING: custom message" in log


def testLogResourceBadLevel():
    resource = build_resource({"type": "log", "name": "x", "level": "loud"}, NODE)
    with pytest.raises(InvalidLogLevel):
        resource.run_action("write")


def testRecipeDeclaresWithoutRunning(tmp_path):
    target = tmp_path / "declared"
    source = (
        "log('compiling for ' + node.name)\n"
        "file(%r, content='x')\n"
        "directory(%r, action='nothing')\n" % (str(target), str(tmp_path / "d"))
    )
    recipe = Recipe("cookbook", "default", NODE)
    collection = recipe.from_string(source)
    assert [str(r) for r in collection] == [
        "log[compiling for test-node]",
        "file[%s]" % target,
        "directory[%s]" % (tmp_path / "d"),
    ]
    assert not target.exists()
    assert collection.lookup("file[%s]" % target).content == "x"


def testRecipeSyntaxError(tmp_path):
    script = tmp_path / "broken.py"
    script.write_text("file('/tmp/x'\n")
    with pytest.raises(SyntaxError):
        Recipe("cookbook", "broken", NODE).from_file(str(script))


def testRunnerConvergesInOrderAndStopsOnError():
    calls = []
    collection = ResourceCollection([
        build_resource({"type": "block", "name": "one",
                        "block": lambda: calls.append("one")}, NODE),
        build_resource({"type": "block", "name": "two"}, NODE),
        build_resource({"type": "block", "name": "three",
                        "block": lambda: calls.append("three")}, NODE),
    ])
    with captured(level="info") as sink:
        with pytest.raises(ResourceError):
            Runner(NODE, collection).converge()
    assert calls == ["one"]
    log = sink.results()
    assert "Processing block[one] action run" in log
    assert "block[two] (run) had an error" in log
    assert "block[three]" not in log
    assert "block" not in collection[0].for_json()


def testClientRun(tmp_path):
    base = tmp_path / "base"
    base.mkdir()
    recipe = base / "default.py"
    target = tmp_path / "converged"
    recipe.write_text("file(%r, content=node.name)\n" % str(target))

    client = Client(run_list=[str(recipe)], node_name="web-01")
    with captured(level="info") as sink:
        collection = client.run()
    assert client.node.name == "web-01"
    assert client.node.run_list == [str(recipe)]
    assert target.read_text() == "web-01"
    assert len(collection) == 1
    log = sink.results()
    assert "Starting client run on web-01" in log
    assert "Client run finished" in log


def testBuildNodeAttributes():
    node = Client().build_node()
    for key in ("hostname", "os", "python", "collected_at"):
        assert key in node
    assert node.name == node["hostname"]
    assert node.for_json()["attributes"] == node.attributes
