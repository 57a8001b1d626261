import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from netspawner.config import settings
from netspawner.errors import ConfigParseError, ConfigReadError
from netspawner.models.schemas import NetworkConfig

logger = logging.getLogger(__name__)


def tool_dir() -> Path:
    """Directory holding the running tool and its configs.json.

    Under ``python -m netspawner`` this is the working directory.
    """
    override = os.environ.get(settings.HOME_ENV)
    if override:
        return Path(override).resolve()
    script = Path(sys.argv[0]).resolve()
    if script.name == "__main__.py":
        return Path.cwd().resolve()
    return script.parent


def load_config(directory: Path) -> NetworkConfig:
    path = Path(directory) / settings.CONFIG_FILE

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigReadError(path, e.strerror or e) from e

    try:
        config = NetworkConfig.model_validate_json(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'document'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigParseError(path, problems) from e

    logger.debug(f"Loaded {path}: corePath={config.core_path} netMode={config.net_mode}")
    return config
