"""Config loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from loguru import logger


def load_config(path: str | Path) -> dict[str, Any]:
    """Load config from YAML file. Use SafeLoader. Returns raw dict (empty for an empty file)."""
    path = Path(path)
    if not path.exists():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file {} has invalid structure (expected dict)", path)
        return {}
    return data


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load .env (python-dotenv) into the process env, then the YAML config."""
    from dotenv import load_dotenv

    load_dotenv()
    return load_config(path)
