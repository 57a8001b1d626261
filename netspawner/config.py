import os


class Settings:
    CONFIG_FILE = "configs.json"
    GENESIS_FILE = "genesis.json"
    NODE_CONFIG_FILE = "configs.json"
    NODE_CONFIGS_DIR = "configs_for_nodes"
    NODE_CONFIG_TEMPLATE = "config_{index}.json"
    CHAINDATA_DIR = "CHAINDATA"
    NODE_DIR_PREFIX = "V"
    NETWORK_DIR_PREFIX = "X"
    TIMESTAMP_FIELD = "FIRST_EPOCH_START_TIMESTAMP"
    CHAINDATA_ENV = "CHAINDATA_PATH"
    HOME_ENV = "NETSPAWNER_HOME"
    DEBUG_ENV = "NETSPAWNER_DEBUG"
    DEFAULT_NODE_COUNT: int = 2
    LINE_LIMIT: int = 1024 * 1024
    DRAIN_TIMEOUT: float = 5.0

    @property
    def debug(self) -> bool:
        return os.environ.get(self.DEBUG_ENV, "") not in ("", "0")


settings = Settings()
