#!filepath: lendrelay/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from .log_config import LogConfig
from .pool_config import PoolConfig
from .relay_config import RelayConfig
from .secret_config import SecretConfig

# environment variable -> relay field
_ENV_OVERRIDES = {
    "RPC_URL": "rpc_url",
    "CHAIN_ID": "chain_id",
    "LENDING_POOL_ADDRESS": "lending_pool_address",
    "DUSD_ADDRESS": "token_address",
    "PORT": "port",
    "RELAY_EXECUTOR": "executor",
}


def project_root() -> str:
    """
    lendrelay/config/app_config.py -> lendrelay/config -> lendrelay -> project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class AppConfig(BaseModel):
    log: LogConfig
    relay: RelayConfig
    pool: PoolConfig = PoolConfig()
    secret: SecretConfig = SecretConfig()

    @classmethod
    def load(cls, path: str | None = None, env_file: str | None = None) -> "AppConfig":
        """
        YAML config + .env

        - default YAML: lendrelay/config/base.yml
        - default .env: <project_root>/.env
        - env vars override the relay section; the relay key only comes from env
        """
        root = project_root()

        load_dotenv(env_file or os.path.join(root, ".env"))

        if path is None:
            path = os.path.join(root, "lendrelay/config/base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        relay = raw.get("relay")
        if isinstance(relay, dict):
            for env_name, field in _ENV_OVERRIDES.items():
                value = os.getenv(env_name)
                if value:
                    relay[field] = value

        raw["secret"] = {
            "relay_private_key": os.getenv("RELAYER_PRIVATE_KEY"),
        }
        return cls(**raw)
