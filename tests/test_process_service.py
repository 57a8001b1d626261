import io
import subprocess
import time
import sys

import pytest

from netspawner.config import settings
from netspawner.errors import SpawnError
from netspawner.services.process_service import ProcessService
from netspawner.services.topology_service import plan

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX process semantics")


def _launch(executable, topology):
    out, err = io.StringIO(), io.StringIO()
    service = ProcessService(str(executable), stdout=out, stderr=err)
    nodes = service.launch(topology)
    return service, nodes, out, err


def test_each_node_gets_its_own_directory(tmp_path, make_stub):
    stub = make_stub('echo "identity $CHAINDATA_PATH"')
    topology = plan("TESTNET_3V", tmp_path / "net")

    service, nodes, out, _ = _launch(stub, topology)
    codes = service.await_all(nodes)

    assert codes == {1: 0, 2: 0, 3: 0}
    lines = out.getvalue().splitlines()
    for slot in topology.slots:
        assert f"[{slot.directory}]: identity {slot.directory}" in lines
        assert f"[{slot.directory}]: process exited" in lines


def test_streams_are_forwarded_separately(tmp_path, make_stub):
    stub = make_stub('echo out-line\necho err-line >&2')
    topology = plan("TESTNET_1V", tmp_path)

    service, nodes, out, err = _launch(stub, topology)
    service.await_all(nodes)

    prefix = f"[{topology.slots[0].directory}]"
    assert out.getvalue().splitlines() == [f"{prefix}: out-line", f"{prefix}: process exited"]
    assert err.getvalue().splitlines() == [f"{prefix}: err-line"]


def test_exit_notice_follows_drained_output(tmp_path, make_stub):
    stub = make_stub('i=0\nwhile [ $i -lt 300 ]; do echo "line $i"; i=$((i+1)); done')
    topology = plan("TESTNET_1V", tmp_path)

    service, nodes, out, _ = _launch(stub, topology)
    service.await_all(nodes)

    prefix = f"[{topology.slots[0].directory}]"
    assert out.getvalue().splitlines() == [f"{prefix}: line {i}" for i in range(300)] + [f"{prefix}: process exited"]


def test_exit_codes_are_reported(tmp_path, make_stub):
    stub = make_stub("exit 3")
    topology = plan("TESTNET_2V", tmp_path)

    service, nodes, _, _ = _launch(stub, topology)

    assert service.await_all(nodes) == {1: 3, 2: 3}
    assert all(node.returncode == 3 for node in nodes)


def test_environment_is_inherited(tmp_path, make_stub, monkeypatch):
    monkeypatch.setenv("NETSPAWNER_TEST_MARKER", "inherited")
    stub = make_stub('echo "$NETSPAWNER_TEST_MARKER"')
    topology = plan("TESTNET_1V", tmp_path)

    service, nodes, out, _ = _launch(stub, topology)
    service.await_all(nodes)

    assert f"[{topology.slots[0].directory}]: inherited" in out.getvalue().splitlines()


def test_no_arguments_are_passed(tmp_path, make_stub):
    stub = make_stub('echo "argc=$#"')
    topology = plan("TESTNET_1V", tmp_path)

    service, nodes, out, _ = _launch(stub, topology)
    service.await_all(nodes)

    assert "argc=0" in out.getvalue()


def test_missing_executable(tmp_path):
    topology = plan("TESTNET_2V", tmp_path)
    service = ProcessService(str(tmp_path / "missing-core"))

    with pytest.raises(SpawnError) as exc:
        service.launch(topology)

    assert exc.value.node == 1
    assert "V1" in str(exc.value)
    assert "missing-core" in str(exc.value)


def test_not_executable(tmp_path):
    core = tmp_path / "core"
    core.write_text("not a program")
    core.chmod(0o644)

    with pytest.raises(SpawnError):
        ProcessService(str(core)).launch(plan("TESTNET_1V", tmp_path))


def test_descendant_holding_stdout_does_not_block_await(tmp_path, make_stub, monkeypatch):
    monkeypatch.setattr(settings, "DRAIN_TIMEOUT", 0.2)
    stub = make_stub("sleep 3 &\necho hi")
    topology = plan("TESTNET_1V", tmp_path)

    service, nodes, out, _ = _launch(stub, topology)
    started = time.monotonic()
    codes = service.await_all(nodes)

    assert codes == {1: 0}
    assert time.monotonic() - started < 2
    prefix = f"[{topology.slots[0].directory}]"
    assert out.getvalue().splitlines() == [f"{prefix}: hi", f"{prefix}: process exited"]


def test_spawn_failure_leaves_started_nodes_running(tmp_path, make_stub, monkeypatch):
    stub = make_stub("sleep 5")
    topology = plan("TESTNET_3V", tmp_path)
    real_popen = subprocess.Popen
    started = []

    def popen_once(*args, **kwargs):
        if started:
            raise FileNotFoundError(2, "No such file or directory")
        process = real_popen(*args, **kwargs)
        started.append(process)
        return process

    monkeypatch.setattr(subprocess, "Popen", popen_once)

    with pytest.raises(SpawnError) as exc:
        ProcessService(str(stub)).launch(topology)

    try:
        assert exc.value.node == 2
        assert "V2" in str(exc.value)
        assert len(started) == 1
        assert started[0].poll() is None
    finally:
        for process in started:
            process.kill()
            process.wait()
