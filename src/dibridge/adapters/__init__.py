"""Chat platform adapters."""

from dibridge.adapters.base import AdapterBase
from dibridge.adapters.discord import DiscordAdapter

__all__ = ["AdapterBase", "DiscordAdapter"]
