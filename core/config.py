"""Configuration models and loading."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "dynserv-gateway"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = True


class AuthSettings(BaseModel):
    # Local-development fallback; replace in config.json for real deployments
    shared_secret: str = "testing"


class BackendSettings(BaseModel):
    default_port: int = 443
    connect_timeout: float = 10.0
    first_byte_timeout: float = 30.0
    between_bytes_timeout: float = 30.0
    tls_min_version: str = "1.2"
    tls_max_version: str = "1.3"
    cache_descriptors: bool = False
    # Upper bound on cached descriptors; hosts beyond it are provisioned uncached
    cache_max_entries: int = 1024


class LimitsSettings(BaseModel):
    keep_alive_timeout: int = 5


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
