"""
Configuration Management for w3loot

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Environment variables (W3LOOT_*)
2. Configuration file
3. Default values
"""

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_ALLOWLIST_PATH = Path(__file__).resolve().parent.parent / "data" / "checksums.json"


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class CatalogConfig:
    """Configuration for the remote item catalog."""

    url: str = "https://raw.githubusercontent.com/sfarmani/twrpg-info/master/items.json"
    timeout_seconds: float = 10.0
    # Skip the download entirely (every item lookup then fails individually)
    enabled: bool = True


@dataclass
class AllowlistConfig:
    """Configuration for the map checksum allowlist."""

    path: str = str(DEFAULT_ALLOWLIST_PATH)


@dataclass
class ServerConfig:
    """Configuration for the upload API."""

    host: str = "0.0.0.0"
    port: int = 8000
    # uvicorn worker processes; each one loads its own item catalog
    workers: int = 1
    max_file_size_mb: int = 50
    allowed_extensions: list[str] = field(default_factory=lambda: [".w3g"])
    rate_limit_upload: str = "30/minute"


@dataclass
class ParallelConfig:
    """Configuration for batch analysis of several replays."""

    max_workers: int = 4


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None


@dataclass
class W3LootConfig:
    """Main configuration container."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    allowlist: AllowlistConfig = field(default_factory=AllowlistConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "w3loot.yaml")
    paths.append(Path.cwd() / "w3loot.toml")
    paths.append(Path.cwd() / "w3loot.json")
    paths.append(Path.cwd() / ".w3loot.yaml")

    # User home directory
    home = Path.home()
    paths.append(home / ".config" / "w3loot" / "config.yaml")
    paths.append(home / ".config" / "w3loot" / "config.toml")

    # XDG config directory
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "w3loot" / "config.yaml")

    return paths


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return load_yaml_config(path)
    elif suffix == ".toml":
        return load_toml_config(path)
    elif suffix == ".json":
        return load_json_config(path)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        "W3LOOT_LOG_LEVEL": ("logging", "level"),
        "W3LOOT_LOG_FILE": ("logging", "file"),
        "W3LOOT_CATALOG_URL": ("catalog", "url"),
        "W3LOOT_CATALOG_TIMEOUT": ("catalog", "timeout_seconds"),
        "W3LOOT_CATALOG_ENABLED": ("catalog", "enabled"),
        "W3LOOT_ALLOWLIST_PATH": ("allowlist", "path"),
        "W3LOOT_HOST": ("server", "host"),
        "W3LOOT_PORT": ("server", "port"),
        "W3LOOT_MAX_FILE_SIZE_MB": ("server", "max_file_size_mb"),
        "W3LOOT_RATE_LIMIT_UPLOAD": ("server", "rate_limit_upload"),
        "W3LOOT_MAX_WORKERS": ("parallel", "max_workers"),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            if section not in config:
                config[section] = {}

            # Type conversion
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            else:
                try:
                    value = float(value)
                except ValueError:
                    pass

            config[section][key] = value

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> W3LootConfig:
    """Convert a dictionary to W3LootConfig, ignoring unknown keys."""
    config = W3LootConfig()

    for section in ("catalog", "allowlist", "server", "parallel", "logging"):
        if section not in data or not isinstance(data[section], dict):
            continue
        target = getattr(config, section)
        for key, value in data[section].items():
            if hasattr(target, key):
                setattr(target, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {section}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> W3LootConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged W3LootConfig
    """
    config_data: dict[str, Any] = {}

    # Try to find and load a config file
    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    # Merge environment variables
    if include_env:
        env_config = load_env_config()
        config_data = merge_configs(config_data, env_config)

    return dict_to_config(config_data)


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: W3LootConfig) -> dict[str, Any]:
    """Convert W3LootConfig to a dictionary."""
    return asdict(config)


def save_config(config: W3LootConfig, path: Path) -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (.yaml, .yml or .json)
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unknown config format: {suffix}")

    logger.info(f"Saved config to: {path}")


# ============================================================================
# Logging
# ============================================================================


def configure_logging(config: LoggingConfig) -> None:
    """Apply the logging section to the root logger."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    logging.basicConfig(
        level=getattr(logging, str(config.level).upper(), logging.INFO),
        format=config.format,
        handlers=handlers,
        force=True,
    )


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: W3LootConfig | None = None


def get_config() -> W3LootConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: W3LootConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None
