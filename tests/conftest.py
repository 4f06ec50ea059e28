"""Shared fixtures: a small working tree with sources and built maps."""

import json
from pathlib import Path

import pytest

VALID_SOURCE_ROOT = "https://raw.githubusercontent.com/ampproject/amphtml/1234567890123/"
SENTINEL_FILE = "src/polyfills/abort-controller.js"
SENTINEL_CODE = "class AbortController {"

SENTINEL_CONTENTS = "class AbortController {\n  constructor() {\n    this.signal_ = null;\n  }\n}\n"

DROP = object()


def make_map(**overrides) -> dict:
    """Valid source map dict; pass DROP to remove a key."""
    data = {
        "version": 3,
        "file": "v0.js",
        "sourceRoot": VALID_SOURCE_ROOT,
        "sources": [SENTINEL_FILE, "src/amp.js", "[synthetic:runtime]"],
        "names": [],
        # Line 0 is empty, line 1 starts with sources[0]:0:0 then sources[1]:0:1
        "mappings": ";AAAA,CCAC",
    }
    for key, value in overrides.items():
        if value is DROP:
            data.pop(key, None)
        else:
            data[key] = value
    return data


def write_map(path: Path, **overrides) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(make_map(**overrides)), encoding="utf-8")
    return path


@pytest.fixture
def source_tree(tmp_path):
    """Working tree with both dist maps and the sources they reference."""
    sentinel = tmp_path / SENTINEL_FILE
    sentinel.parent.mkdir(parents=True)
    sentinel.write_text(SENTINEL_CONTENTS, encoding="utf-8")
    (tmp_path / "src" / "amp.js").write_text("import './polyfills';\n", encoding="utf-8")

    write_map(tmp_path / "dist" / "v0.js.map")
    write_map(tmp_path / "dist" / "v0.mjs.map", file="v0.mjs")
    return tmp_path
