"""Event types: inbound Discord events and the normalized facts handed downstream."""

from __future__ import annotations

import functools
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from dibridge.state.base import MemberRecord, Status, UserRef


@dataclass
class ChatMessage:
    """Inbound chat message (create or edit)."""

    message_id: str
    channel_id: str
    author: UserRef | None
    content: str
    guild_id: str | None = None
    mentions: tuple[UserRef, ...] = ()
    role_mentions: tuple[str, ...] = ()
    attachments: tuple[str, ...] = ()  # attachment URLs
    is_private: bool = False  # sent in a one-to-one DM channel
    is_edit: bool = False


@dataclass
class ReactionAdd:
    """Reaction added to a message."""

    channel_id: str
    message_id: str
    user: UserRef | None
    emoji_name: str
    emoji_id: str | None = None  # set for custom emoji
    guild_id: str | None = None


@dataclass
class MembersChunk:
    """Bulk membership snapshot."""

    members: list[MemberRecord] = field(default_factory=list)


@dataclass
class MemberUpdate:
    member: MemberRecord


@dataclass
class MemberRemove:
    """Member left, was kicked or banned."""

    user_id: str


@dataclass
class PresenceUpdate:
    user_id: str
    status: Status


@dataclass
class TypingStart:
    user_id: str
    channel_id: str


@dataclass(frozen=True)
class NormalizedMessage:
    """Bridge-ready message for the IRC side. One per body, one per attachment."""

    message_id: str
    channel_id: str
    author: UserRef
    content: str
    guild_id: str | None = None
    is_action: bool = False
    is_edit: bool = False
    pm_target: str = ""
    attachments: tuple[str, ...] = ()


@dataclass(frozen=True)
class UserFact:
    """The bridge's belief about one Discord user. Latest fact wins.

    An offline-only fact carries just ``id`` and ``online=False``; ``None`` name
    fields mean "unchanged".
    """

    id: str
    username: str | None = None
    discriminator: str | None = None
    nick: str | None = None
    bot: bool = False
    online: bool = False

    @property
    def is_offline_only(self) -> bool:
        return not self.online and self.username is None


def event(type_name: str):
    """Decorator to mark a factory as producing an event with a given type."""

    def decorator(f: Any) -> Any:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> tuple[str, object]:
            evt = f(*args, **kwargs)
            return (type_name, evt)

        wrapper.TYPE = type_name  # type: ignore[attr-defined]
        return wrapper

    return decorator


def _chat_message(
    message_id: str,
    channel_id: str,
    author: UserRef | None,
    content: str,
    *,
    guild_id: str | None,
    mentions: Iterable[UserRef],
    role_mentions: Iterable[str],
    attachments: Iterable[str],
    is_private: bool,
    is_edit: bool,
) -> ChatMessage:
    return ChatMessage(
        message_id=message_id,
        channel_id=channel_id,
        author=author,
        content=content,
        guild_id=guild_id,
        mentions=tuple(mentions),
        role_mentions=tuple(role_mentions),
        attachments=tuple(attachments),
        is_private=is_private,
        is_edit=is_edit,
    )


@event("message_create")
def message_create(
    message_id: str,
    channel_id: str,
    author: UserRef | None,
    content: str,
    *,
    guild_id: str | None = None,
    mentions: Iterable[UserRef] = (),
    role_mentions: Iterable[str] = (),
    attachments: Iterable[str] = (),
    is_private: bool = False,
) -> ChatMessage:
    return _chat_message(
        message_id,
        channel_id,
        author,
        content,
        guild_id=guild_id,
        mentions=mentions,
        role_mentions=role_mentions,
        attachments=attachments,
        is_private=is_private,
        is_edit=False,
    )


@event("message_update")
def message_update(
    message_id: str,
    channel_id: str,
    author: UserRef | None,
    content: str,
    *,
    guild_id: str | None = None,
    mentions: Iterable[UserRef] = (),
    role_mentions: Iterable[str] = (),
    attachments: Iterable[str] = (),
    is_private: bool = False,
) -> ChatMessage:
    return _chat_message(
        message_id,
        channel_id,
        author,
        content,
        guild_id=guild_id,
        mentions=mentions,
        role_mentions=role_mentions,
        attachments=attachments,
        is_private=is_private,
        is_edit=True,
    )


@event("reaction_add")
def reaction_add(
    channel_id: str,
    message_id: str,
    user: UserRef | None,
    emoji_name: str,
    *,
    emoji_id: str | None = None,
    guild_id: str | None = None,
) -> ReactionAdd:
    return ReactionAdd(
        channel_id=channel_id,
        message_id=message_id,
        user=user,
        emoji_name=emoji_name,
        emoji_id=emoji_id,
        guild_id=guild_id,
    )


@event("members_chunk")
def members_chunk(members: Iterable[MemberRecord]) -> MembersChunk:
    return MembersChunk(members=list(members))


@event("member_update")
def member_update(member: MemberRecord) -> MemberUpdate:
    return MemberUpdate(member=member)


@event("member_remove")
def member_remove(user_id: str) -> MemberRemove:
    return MemberRemove(user_id=user_id)


@event("presence_update")
def presence_update(user_id: str, status: Status) -> PresenceUpdate:
    return PresenceUpdate(user_id=user_id, status=status)


@event("typing_start")
def typing_start(user_id: str, channel_id: str) -> TypingStart:
    return TypingStart(user_id=user_id, channel_id=channel_id)
