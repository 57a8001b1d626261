from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class NetworkConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    core_path: str = Field(alias="corePath", min_length=1)
    net_mode: str = Field(alias="netMode", min_length=1)


class ModePolicy(Enum):
    LENIENT = "lenient"  # unrecognized mode -> default node count
    STRICT = "strict"  # unrecognized mode -> InvalidModeFormat


@dataclass(frozen=True)
class NodeSlot:
    index: int
    directory: Path

    @property
    def name(self) -> str:
        return self.directory.name


@dataclass(frozen=True)
class Topology:
    mode: str
    base_dir: Path
    slots: Tuple[NodeSlot, ...]

    @property
    def count(self) -> int:
        return len(self.slots)

    def directories(self):
        return [slot.directory for slot in self.slots]


@dataclass(frozen=True)
class CliArgs:
    command: Optional[str] = None
    show_help: bool = False
