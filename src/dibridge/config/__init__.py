"""Configuration: YAML + env overlay."""

from dibridge.config.loader import load_config, load_config_with_env
from dibridge.config.schema import Config, cfg

__all__ = ["Config", "cfg", "load_config", "load_config_with_env"]
