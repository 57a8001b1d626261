import asyncio
import json
import logging
import shutil
import time
from pathlib import Path
from typing import Callable

import aiofiles

from netspawner.config import settings
from netspawner.errors import GenesisUpdateError, StageCleanupError, StageCopyError
from netspawner.models.schemas import NodeSlot, Topology
from netspawner.utils.exception_decorator import log_exceptions

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def source_dir(tool_dir: Path, mode: str) -> Path:
    return Path(tool_dir) / mode


async def update_genesis_timestamp(genesis_path: Path, ts_ms: int) -> None:
    """Rewrite the whole genesis file with a new first epoch start timestamp.

    Every other field keeps its value; formatting is not preserved.
    """
    async with aiofiles.open(genesis_path, "r", encoding="utf-8") as f:
        genesis = json.loads(await f.read())

    if not isinstance(genesis, dict):
        raise ValueError("genesis must be a JSON object")

    genesis[settings.TIMESTAMP_FIELD] = ts_ms

    async with aiofiles.open(genesis_path, "w", encoding="utf-8") as f:
        await f.write(json.dumps(genesis, indent=2))


class StageService:
    def __init__(self, source: Path, clock: Callable[[], int] = now_ms):
        self._source = Path(source)
        self._clock = clock

    @property
    def genesis_source(self) -> Path:
        return self._source / settings.GENESIS_FILE

    def node_config_source(self, index: int) -> Path:
        return self._source / settings.NODE_CONFIGS_DIR / settings.NODE_CONFIG_TEMPLATE.format(index=index)

    @log_exceptions
    async def stage(self, topology: Topology) -> int:
        """Stage every node of the topology and return the shared start timestamp."""
        logger.info(f"Staging {topology.count} nodes from {self._source} into {topology.base_dir}")
        await asyncio.to_thread(self._copy_all, topology)

        ts_ms = self._clock()
        await self._sync_genesis(topology, ts_ms)
        await asyncio.to_thread(self._purge_chaindata, topology)

        logger.info(f"Staged {topology.count} nodes, {settings.TIMESTAMP_FIELD}={ts_ms}")
        return ts_ms

    def _copy_all(self, topology: Topology) -> None:
        for slot in topology.slots:
            self._copy_node(slot)

    def _copy_node(self, slot: NodeSlot) -> None:
        try:
            slot.directory.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self.genesis_source, slot.directory / settings.GENESIS_FILE)
            shutil.copyfile(self.node_config_source(slot.index), slot.directory / settings.NODE_CONFIG_FILE)
        except OSError as e:
            raise StageCopyError(slot.index, e, slot.directory) from e
        logger.debug(f"Copied seed files into {slot.directory}")

    async def _sync_genesis(self, topology: Topology, ts_ms: int) -> None:
        for slot in topology.slots:
            genesis = slot.directory / settings.GENESIS_FILE
            if not genesis.is_file():
                continue
            try:
                await update_genesis_timestamp(genesis, ts_ms)
            except (OSError, ValueError) as e:
                raise GenesisUpdateError(slot.index, e, genesis) from e

    def _purge_chaindata(self, topology: Topology) -> None:
        for slot in topology.slots:
            chaindata = slot.directory / settings.CHAINDATA_DIR
            if not chaindata.is_dir():
                continue
            try:
                shutil.rmtree(chaindata)
            except OSError as e:
                raise StageCleanupError(slot.index, e, chaindata) from e
            logger.debug(f"Removed {chaindata}")
