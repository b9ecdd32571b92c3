"""Config schema and accessor."""

from __future__ import annotations

import os
from typing import Any

from loguru import logger

from dibridge.core.errors import BridgeConfigurationError

# Env keys that override config (loaded once per reload)
_ENV_OVERRIDE_KEYS = (
    "BRIDGE_DISCORD_TOKEN",
    "BRIDGE_GUILD_ID",
    "BRIDGE_SIMPLE_MODE",
)


def _load_env_overrides() -> dict[str, str]:
    return {k: os.environ.get(k, "") for k in _ENV_OVERRIDE_KEYS}


def _parse_bool_env(val: str) -> bool | None:
    """Parse env string to bool; None if not a recognized bool."""
    v = val.lower()
    if v in ("1", "true", "yes"):
        return True
    if v in ("0", "false", "no"):
        return False
    return None


class Config:
    """Config accessor with attribute-style access for nested keys."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data and re-read env overrides."""
        self._data = data or {}
        self._env = _load_env_overrides()
        if validate:
            self._validate()
        logger.debug("Config reloaded: guild={} simple_mode={}", self.guild_id, self.simple_mode)

    def _validate(self) -> None:
        """Validate config structure; raise BridgeConfigurationError on failure."""
        if not self.guild_id:
            raise BridgeConfigurationError("guild_id is required", code="missing_guild_id")
        if not self.guild_id.isdigit():
            raise BridgeConfigurationError(
                "guild_id must be a Discord snowflake",
                code="invalid_guild_id",
                details={"guild_id": self.guild_id},
            )
        webhook_ids = self._data.get("webhook_ids")
        if webhook_ids is not None and not isinstance(webhook_ids, list):
            raise BridgeConfigurationError(
                "webhook_ids must be a list",
                code="invalid_webhook_ids",
                details={"type": type(webhook_ids).__name__},
            )
        if self.nick_max_length <= len(self.nick_suffix):
            raise BridgeConfigurationError(
                "nick_max_length must be longer than nick_suffix",
                code="invalid_nick_length",
                details={"nick_max_length": self.nick_max_length, "nick_suffix": self.nick_suffix},
            )

    @property
    def raw(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path."""
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def discord_token(self) -> str | None:
        return self._env.get("BRIDGE_DISCORD_TOKEN") or None

    @property
    def guild_id(self) -> str:
        env_val = self._env.get("BRIDGE_GUILD_ID", "")
        if env_val:
            return env_val.strip()
        return str(self._data.get("guild_id", "") or "").strip()

    @property
    def simple_mode(self) -> bool:
        """Skip presence and membership handling."""
        parsed = _parse_bool_env(self._env.get("BRIDGE_SIMPLE_MODE", ""))
        if parsed is not None:
            return parsed
        return bool(self._data.get("simple_mode", False))

    @property
    def relay_reactions(self) -> bool:
        return bool(self._data.get("relay_reactions", True))

    @property
    def webhook_prefix(self) -> str:
        return str(self._data.get("webhook_prefix", "(dibridge)"))

    @property
    def webhook_ids(self) -> list[str]:
        val = self._data.get("webhook_ids")
        if isinstance(val, list):
            return [str(v) for v in val]
        return []

    @property
    def nick_suffix(self) -> str:
        return str(self._data.get("nick_suffix", "~d"))

    @property
    def nick_max_length(self) -> int:
        val = self._data.get("nick_max_length", 30)
        try:
            return int(val)
        except (TypeError, ValueError) as exc:
            raise BridgeConfigurationError(
                "nick_max_length must be an integer",
                code="invalid_nick_length",
                details={"nick_max_length": val},
                original_error=exc,
            ) from exc


cfg: Config = Config({})
