import json
import logging
import stat
import sys

import pytest


@pytest.fixture
def tool_home(tmp_path, monkeypatch):
    home = tmp_path / "tool"
    home.mkdir()
    monkeypatch.setenv("NETSPAWNER_HOME", str(home))
    return home


@pytest.fixture
def write_config():
    def _write(directory, **fields):
        path = directory / "configs.json"
        path.write_text(json.dumps(fields))
        return path
    return _write


@pytest.fixture
def make_stub(tmp_path):
    if sys.platform == "win32":
        pytest.skip("stub executables are POSIX shell scripts")

    def _make(body, name="node.sh"):
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path
    return _make


@pytest.fixture
def make_bundle():
    """Source bundle for a mode: genesis.json plus configs_for_nodes/config_<i>.json."""
    def _make(home, mode, count, genesis=None, skip=()):
        bundle = home / mode
        (bundle / "configs_for_nodes").mkdir(parents=True)
        if genesis is None:
            genesis = {"CHAIN_ID": "local", "VALIDATORS": ["a", "b"], "FIRST_EPOCH_START_TIMESTAMP": 0}
        (bundle / "genesis.json").write_text(json.dumps(genesis))
        for i in range(1, count + 1):
            if i in skip:
                continue
            (bundle / "configs_for_nodes" / f"config_{i}.json").write_text(json.dumps({"node": i}))
        return bundle
    return _make


@pytest.fixture(autouse=True)
def restore_logging():
    # main() installs its own root handler bound to the captured stderr
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
