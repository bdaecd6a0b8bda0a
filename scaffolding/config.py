"""Configuration management for devscaffold.

Loads configuration from:
1. devscaffold.toml in the current or a parent directory, else
   ~/.devscaffold/config.toml (defaults)
2. Environment variables (overrides)
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from registry.client import INDEX_REFERENCE

# Load .env file if present
load_dotenv()

CONFIG_FILENAME = "devscaffold.toml"
DEFAULT_DATA_DIR = "~/.devscaffold"


@dataclass
class RegistryConfig:
    """Artifact registry configuration."""

    index_reference: str = INDEX_REFERENCE
    default_tag: str = "latest"
    timeout: float = 30.0


@dataclass
class StorageConfig:
    """Local storage configuration."""

    data_dir: str = DEFAULT_DATA_DIR
    index_filename: str = "devcontainer-index.json"


@dataclass
class InitConfig:
    """Defaults for `devscaffold init`."""

    attempt_single_file: bool = False
    include_deprecated: bool = False


@dataclass
class Config:
    """Main configuration container."""

    registry: RegistryConfig = field(default_factory=RegistryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    init: InitConfig = field(default_factory=InitConfig)
    log_level: str = "WARNING"

    @property
    def data_dir(self) -> Path:
        return Path(self.storage.data_dir).expanduser()

    @property
    def index_path(self) -> Path:
        """Location of the persisted index document."""
        return self.data_dir / self.storage.index_filename

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            registry=RegistryConfig(**data.get("registry", {})),
            storage=StorageConfig(**data.get("storage", {})),
            init=InitConfig(**data.get("init", {})),
            log_level=data.get("log_level", "WARNING"),
        )


def find_config_file() -> Path | None:
    """Find the configuration file.

    Returns:
        Path to devscaffold.toml in the current or a parent directory, the
        user configuration file, or None if neither exists.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILENAME
        if config_path.exists():
            return config_path

    user_config = Path(DEFAULT_DATA_DIR).expanduser() / "config.toml"
    if user_config.exists():
        return user_config

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to a TOML file

    Returns:
        Config object with merged settings.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    env_overrides = {
        "registry": {
            "index_reference": os.getenv("DEVSCAFFOLD_INDEX_REFERENCE"),
            "timeout": _float_or_none(os.getenv("DEVSCAFFOLD_REGISTRY_TIMEOUT")),
        },
        "storage": {
            "data_dir": os.getenv("DEVSCAFFOLD_DATA_DIR"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    log_level = os.getenv("DEVSCAFFOLD_LOG_LEVEL")
    if log_level:
        config_data["log_level"] = log_level

    return Config.from_dict(config_data)


def _float_or_none(value: str | None) -> float | None:
    """Convert string to float, or return None."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
