"""Read-only guild state: records, lookup protocol and the discord.py-backed cache."""

from dibridge.state.base import (
    ChannelKind,
    ChannelRecord,
    GuildState,
    MemberRecord,
    RoleRecord,
    Status,
    UserRef,
)
from dibridge.state.discord_state import DiscordGuildState

__all__ = [
    "ChannelKind",
    "ChannelRecord",
    "DiscordGuildState",
    "GuildState",
    "MemberRecord",
    "RoleRecord",
    "Status",
    "UserRef",
]
