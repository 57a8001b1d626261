import logging
from pathlib import Path

from netspawner.config import settings
from netspawner.errors import InvalidModeFormat
from netspawner.models.schemas import ModePolicy, NodeSlot, Topology

logger = logging.getLogger(__name__)


def parse_node_count(mode: str) -> int:
    """Read N from a mode tag ending in an ``<N>V`` token, e.g. TESTNET_5V."""
    parts = mode.split("_")
    if len(parts) < 2:
        raise InvalidModeFormat(mode, "expected <NAME>_<N>V")

    last = parts[-1]
    if not last.endswith("V"):
        raise InvalidModeFormat(mode, "last token must end with 'V'")

    digits = last[:-1]
    try:
        count = int(digits)
    except ValueError:
        raise InvalidModeFormat(mode, f"{digits!r} is not a node count") from None

    if count <= 0:
        raise InvalidModeFormat(mode, "node count must be positive")
    return count


def node_count(mode: str, policy: ModePolicy = ModePolicy.LENIENT) -> int:
    try:
        return parse_node_count(mode)
    except InvalidModeFormat as e:
        if policy is ModePolicy.STRICT:
            raise
        logger.warning(f"{e}; falling back to {settings.DEFAULT_NODE_COUNT} nodes")
        return settings.DEFAULT_NODE_COUNT


def node_dir(base_dir: Path, index: int) -> Path:
    return Path(base_dir) / f"{settings.NODE_DIR_PREFIX}{index}"


def network_dir(tool_dir: Path, mode: str) -> Path:
    return Path(tool_dir) / f"{settings.NETWORK_DIR_PREFIX}{mode}"


def plan(mode: str, base_dir: Path, policy: ModePolicy = ModePolicy.LENIENT) -> Topology:
    n = node_count(mode, policy)
    slots = tuple(NodeSlot(index=i, directory=node_dir(base_dir, i)) for i in range(1, n + 1))
    return Topology(mode=mode, base_dir=Path(base_dir), slots=slots)
