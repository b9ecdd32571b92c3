"""Discord adapter package."""

from dibridge.adapters.discord.adapter import DiscordAdapter

__all__ = ["DiscordAdapter"]
