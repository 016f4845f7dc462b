"""Shared fixtures: on-disk node packages built from a file map."""

import json
import logging
from pathlib import Path

import pytest

STUB_JS = """\
module.exports = function (RED) {
    function FooNode(config) {
        RED.nodes.createNode(this, config);
    }
    RED.nodes.registerType("foo", FooNode);
};
"""

DEVICE_JS = """\
import {Node} from "nodered";

class FooNode extends Node {
    static type = "foo";
    static {
        RED.nodes.registerType(this.type, this);
    }

    onStart(config) {
        super.onStart(config);
    }
}
"""

MARKUP_HTML = """\
<script type="text/javascript">
    RED.nodes.registerType("foo", {
        category: "function",
        defaults: {
            name: {value: ""},
            moddable_manifest: {value: {include: "manifest.json"}}
        },
        inputs: 1,
        outputs: 1,
        label: function () { return this.name || "foo"; }
    });
</script>

<script type="text/html" data-template-name="foo">
    <div class="form-row">
        <label for="node-input-name">Name</label>
        <input type="text" id="node-input-name">
    </div>
</script>

<script type="text/html" data-help-name="foo">
    <p>Sends a message.</p>
</script>
"""


def valid_files() -> dict:
    """File map of a consistent single-node MCU package."""
    return {
        "package.json": {
            "name": "node-red-contrib-foo",
            "version": "1.0.0",
            "node-red": {"nodes": {"foo": "node/foo/foo.js"}},
        },
        "node/foo/foo.js": STUB_JS,
        "node/foo/foo.mcu.js": DEVICE_JS,
        "node/foo/foo.html": MARKUP_HTML,
        "node/foo/manifest.json": {"modules": {"*": "./foo"}, "preload": "foo"},
        "node/foo/locales/en-US/foo.json": {"foo": {"label": {"name": "Name"}}},
    }


def write_files(root: Path, files: dict) -> Path:
    """Write a file map below root. Dict and list values are written as JSON."""
    root.mkdir(parents=True, exist_ok=True)
    for relative_path, content in files.items():
        file_path = root / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, (dict, list)):
            content = json.dumps(content, indent=2)
        file_path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_package(tmp_path):
    """Factory building a package root from the valid file map plus overrides.

    An override value of None removes that file.
    """
    def _make(overrides: dict | None = None, name: str = "pkg") -> Path:
        files = valid_files()
        for relative_path, content in (overrides or {}).items():
            if content is None:
                files.pop(relative_path, None)
            else:
                files[relative_path] = content
        return write_files(tmp_path / name, files)

    return _make


@pytest.fixture
def valid_package(make_package):
    """A consistent single-node MCU package."""
    return make_package()


@pytest.fixture(autouse=True)
def reset_nodelint_logger():
    """Undo CLI logging setup so handlers never outlive a test's streams."""
    yield
    logger = logging.getLogger("nodelint")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
