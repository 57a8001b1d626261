import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Dict

from netspawner.models.schemas import ModePolicy, NetworkConfig, Topology
from netspawner.services.config_service import load_config
from netspawner.services.process_service import ProcessService
from netspawner.services.stage_service import StageService, now_ms, source_dir
from netspawner.services.topology_service import network_dir, plan
from netspawner.utils.exception_decorator import log_exceptions

logger = logging.getLogger(__name__)


class NetworkService:
    def __init__(self, tool_dir: Path, clock: Callable[[], int] = now_ms, stdout=None, stderr=None):
        self._tool_dir = Path(tool_dir)
        self._clock = clock
        self._stdout = stdout
        self._stderr = stderr

    def _announce(self, message: str) -> None:
        print(message, file=self._stdout or sys.stdout, flush=True)

    def _plan(self, config: NetworkConfig, policy: ModePolicy) -> Topology:
        return plan(config.net_mode, network_dir(self._tool_dir, config.net_mode), policy)

    @log_exceptions
    async def resume(self) -> Dict[int, int]:
        self._announce("Resuming network from the same point...")
        config = load_config(self._tool_dir)
        return await self._run(config, self._plan(config, ModePolicy.LENIENT))

    @log_exceptions
    async def reset(self) -> Dict[int, int]:
        self._announce("Resetting network and starting from scratch...")
        config = load_config(self._tool_dir)
        topology = self._plan(config, ModePolicy.STRICT)

        stager = StageService(source_dir(self._tool_dir, config.net_mode), clock=self._clock)
        await stager.stage(topology)

        return await self._run(config, topology)

    async def _run(self, config: NetworkConfig, topology: Topology) -> Dict[int, int]:
        supervisor = ProcessService(config.core_path, stdout=self._stdout, stderr=self._stderr)
        nodes = await asyncio.to_thread(supervisor.launch, topology)
        codes = await asyncio.to_thread(supervisor.await_all, nodes)

        failed = {index: code for index, code in codes.items() if code != 0}
        if failed:
            logger.warning(f"Nodes exited with non-zero status: {failed}")
        logger.info(f"All {topology.count} nodes exited")
        return codes
