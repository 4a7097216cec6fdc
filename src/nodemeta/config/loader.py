"""YAML configuration file loading with Pydantic validation."""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import PluginConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".nodemeta" / "config.yaml"

# Environment variable -> PluginConfig field
_ENV_OVERRIDES = {
    "NODEMETA_DATA_DIR": "data_dir",
    "NODEMETA_AUTH_TOKEN": "auth_token",
    "NODEMETA_READ_TOKEN": "read_token",
    "NODEMETA_SECRET_KEY": "secret_key",
}


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""


def load_yaml(path: Path) -> dict:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML contents.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ConfigError(f"Expected a mapping at the top of {path}")
            return data
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_plugin_config(path: Path | None = None) -> PluginConfig:
    """Load the plugin configuration and apply environment overrides.

    An explicit ``path`` must exist; the default path is optional.
    """
    config_path = path or DEFAULT_CONFIG_PATH
    if path is not None or config_path.exists():
        data = load_yaml(config_path)
    else:
        data = {}

    for env_var, field_name in _ENV_OVERRIDES.items():
        env_val = os.environ.get(env_var, "")
        if env_val:
            data[field_name] = env_val

    try:
        config = PluginConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed for {config_path}: {e}") from e
    logger.debug(f"Loaded configuration (data_dir={config.data_dir})")
    return config
