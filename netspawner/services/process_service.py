import logging
import os
import subprocess
import sys
import threading
from typing import Dict, List, Optional, TextIO

from netspawner.config import settings
from netspawner.errors import SpawnError
from netspawner.models.schemas import NodeSlot, Topology
from netspawner.utils.exception_decorator import log_exceptions

logger = logging.getLogger(__name__)


class NodeProcess:
    """A running node: its process, its two line copiers and its exit watcher."""

    def __init__(self, slot: NodeSlot, process: subprocess.Popen, service: "ProcessService"):
        self.slot = slot
        self.process = process
        self._service = service
        self._drains = [
            self._start_thread(self._pipe_with_prefix, process.stdout, service.stdout, name="stdout"),
            self._start_thread(self._pipe_with_prefix, process.stderr, service.stderr, name="stderr"),
        ]
        self._watcher = self._start_thread(self._watch, name="watch")

    @property
    def prefix(self) -> str:
        return str(self.slot.directory)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    def _start_thread(self, target, *args, name: str) -> threading.Thread:
        thread = threading.Thread(target=target, args=args, name=f"{self.slot.name}-{name}", daemon=True)
        thread.start()
        return thread

    def _pipe_with_prefix(self, pipe, stream):
        with pipe:
            for raw in iter(lambda: pipe.readline(settings.LINE_LIMIT), b""):
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                self._service.emit(stream(), f"[{self.prefix}]: {line}")

    def _watch(self):
        returncode = self.process.wait()
        for drain in self._drains:
            drain.join(settings.DRAIN_TIMEOUT)
            if drain.is_alive():
                logger.warning(
                    f"{self.slot.name}: {drain.name} still open {settings.DRAIN_TIMEOUT}s after exit, "
                    f"a descendant process holds it"
                )
        logger.debug(f"{self.slot.name} (pid {self.pid}) exited with code {returncode}")
        self._service.emit(self._service.stdout(), f"[{self.prefix}]: process exited")

    def wait(self) -> int:
        """Block until the process exited and its streams are drained.

        A stream still held open by a descendant is given up on after
        ``settings.DRAIN_TIMEOUT`` seconds; its copier keeps running.
        """
        self._watcher.join()
        return self.process.returncode


class ProcessService:
    def __init__(self, executable: str, stdout: TextIO = None, stderr: TextIO = None):
        self._executable = executable
        self._stdout = stdout
        self._stderr = stderr

    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    @staticmethod
    def emit(stream: TextIO, line: str) -> None:
        stream.write(line + "\n")
        stream.flush()

    @log_exceptions
    def launch(self, topology: Topology) -> List[NodeProcess]:
        nodes = []
        for slot in topology.slots:
            nodes.append(self._spawn(slot))
        logger.info(f"Launched {len(nodes)} nodes from {topology.base_dir}")
        return nodes

    def _spawn(self, slot: NodeSlot) -> NodeProcess:
        env = dict(os.environ)
        env[settings.CHAINDATA_ENV] = str(slot.directory)

        try:
            process = subprocess.Popen(
                [self._executable],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise SpawnError(slot.index, f"{self._executable}: {e.strerror or e}", slot.directory) from e

        logger.info(f"Started {slot.name} with PID {process.pid}")
        return NodeProcess(slot, process, self)

    def await_all(self, nodes: List[NodeProcess]) -> Dict[int, int]:
        return {node.slot.index: node.wait() for node in nodes}
