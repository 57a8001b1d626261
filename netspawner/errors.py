from pathlib import Path
from typing import Optional


class NetSpawnerError(Exception):
    pass


class ConfigError(NetSpawnerError):
    operation = "config"

    def __init__(self, path: Path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"{self.operation} {path}: {reason}")


class ConfigReadError(ConfigError):
    operation = "read config"


class ConfigParseError(ConfigError):
    operation = "parse config"


class InvalidModeFormat(NetSpawnerError):
    def __init__(self, mode: str, reason: str):
        self.mode = mode
        self.reason = reason
        super().__init__(f"invalid network mode {mode!r}: {reason}")


class NodeError(NetSpawnerError):
    """Failure tied to one node of the network."""

    operation = "node"

    def __init__(self, node: int, reason, path: Optional[Path] = None):
        self.node = node
        self.reason = reason
        self.path = path
        where = f" ({path})" if path is not None else ""
        super().__init__(f"{self.operation} node V{node}{where}: {reason}")


class StageError(NodeError):
    pass


class StageCopyError(StageError):
    operation = "stage files for"


class GenesisUpdateError(StageError):
    operation = "update genesis for"


class StageCleanupError(StageError):
    operation = "purge chaindata for"


class SpawnError(NodeError):
    operation = "spawn"
