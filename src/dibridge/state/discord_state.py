"""GuildState backed by the discord.py client cache."""

from __future__ import annotations

from typing import Any

import discord

from dibridge.core.errors import StateLookupError, StateNotFound
from dibridge.state.base import ChannelKind, ChannelRecord, MemberRecord, RoleRecord, Status, UserRef


def user_ref(user: Any) -> UserRef:
    """Convert a discord.py User/Member to a UserRef."""
    avatar = getattr(user, "avatar", None)
    return UserRef(
        id=str(user.id),
        username=user.name,
        discriminator=str(getattr(user, "discriminator", "0") or "0"),
        bot=bool(getattr(user, "bot", False)),
        avatar=getattr(avatar, "key", None) if avatar else None,
    )


def member_record(member: Any) -> MemberRecord:
    return MemberRecord(user=user_ref(member), nick=getattr(member, "nick", None) or None)


def status_of(status: Any) -> Status:
    """Map discord.Status (or its string value) to Status; unknown values count as offline."""
    value = getattr(status, "value", status)
    try:
        return Status(str(value))
    except ValueError:
        return Status.OFFLINE


def channel_record(channel: Any) -> ChannelRecord:
    if isinstance(channel, discord.VoiceChannel):
        kind = ChannelKind.VOICE
    elif isinstance(channel, (discord.DMChannel, discord.GroupChannel)):
        kind = ChannelKind.PRIVATE
    elif isinstance(channel, discord.TextChannel):
        kind = ChannelKind.TEXT
    else:
        kind = ChannelKind.OTHER
    return ChannelRecord(id=str(channel.id), name=getattr(channel, "name", None) or "", kind=kind)


def _snowflake(value: str, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise StateNotFound(f"{what} {value!r} is not a snowflake", code="bad_id", original_error=exc) from exc


class DiscordGuildState:
    """Read-only view of one guild in a discord.py client's cache."""

    def __init__(self, client: discord.Client, guild_id: str) -> None:
        self._client = client
        self._guild_id = guild_id

    def _guild(self) -> discord.Guild:
        guild = self._client.get_guild(_snowflake(self._guild_id, "guild"))
        if guild is None:
            raise StateLookupError(
                f"guild {self._guild_id} not available",
                code="guild_unavailable",
                details={"guild_id": self._guild_id},
            )
        return guild

    def _member(self, user_id: str) -> discord.Member:
        member = self._guild().get_member(_snowflake(user_id, "member"))
        if member is None:
            raise StateNotFound(f"member {user_id} not in state", code="member_not_found")
        return member

    def member(self, user_id: str) -> MemberRecord:
        return member_record(self._member(user_id))

    def presence(self, user_id: str) -> Status:
        return status_of(self._member(user_id).status)

    def role(self, role_id: str) -> RoleRecord:
        role = self._guild().get_role(_snowflake(role_id, "role"))
        if role is None:
            raise StateNotFound(f"role {role_id} not in state", code="role_not_found")
        return RoleRecord(id=str(role.id), name=role.name, mentionable=bool(role.mentionable))

    def channel(self, channel_id: str) -> ChannelRecord:
        channel = self._client.get_channel(_snowflake(channel_id, "channel"))
        if channel is None:
            raise StateNotFound(f"channel {channel_id} not in state", code="channel_not_found")
        return channel_record(channel)

    def members(self) -> list[MemberRecord]:
        return [member_record(m) for m in self._guild().members]
