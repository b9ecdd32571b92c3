"""Guild state records and the lookup protocol the core reads from."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class Status(str, Enum):
    """Presence status as tracked by Discord."""

    ONLINE = "online"
    IDLE = "idle"
    DND = "dnd"
    INVISIBLE = "invisible"
    OFFLINE = "offline"


class ChannelKind(str, Enum):
    TEXT = "text"
    VOICE = "voice"
    PRIVATE = "private"
    OTHER = "other"


@dataclass(frozen=True)
class UserRef:
    """A Discord user as seen in events and mentions."""

    id: str
    username: str
    discriminator: str = "0"
    bot: bool = False
    avatar: str | None = None  # CDN avatar hash


@dataclass(frozen=True)
class MemberRecord:
    """Guild member: user plus guild nickname."""

    user: UserRef
    nick: str | None = None

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def display_nick(self) -> str:
        """Guild nickname, or the username when no nickname is set."""
        return self.nick or self.user.username


@dataclass(frozen=True)
class RoleRecord:
    id: str
    name: str
    mentionable: bool = False


@dataclass(frozen=True)
class ChannelRecord:
    id: str
    name: str
    kind: ChannelKind = ChannelKind.TEXT


class GuildState(Protocol):
    """Read-only lookups against the live guild cache.

    Every lookup raises ``StateNotFound`` when the entity is not in the cache and
    ``StateLookupError`` for any other failure.
    """

    def member(self, user_id: str) -> MemberRecord: ...

    def presence(self, user_id: str) -> Status: ...

    def role(self, role_id: str) -> RoleRecord: ...

    def channel(self, channel_id: str) -> ChannelRecord: ...

    def members(self) -> list[MemberRecord]: ...
