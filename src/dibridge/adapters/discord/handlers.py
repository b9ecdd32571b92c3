"""Conversion of discord.py gateway objects to typed bridge events."""

from __future__ import annotations

from typing import Any

import discord

from dibridge.events import (
    ChatMessage,
    member_remove,
    member_update,
    message_create,
    message_update,
    presence_update,
    reaction_add,
    typing_start,
)
from dibridge.state.discord_state import member_record, status_of, user_ref


def message_fields(message: discord.Message) -> dict[str, Any]:
    """Keyword arguments for the message_create / message_update factories."""
    guild = getattr(message, "guild", None)
    author = getattr(message, "author", None)
    return {
        "message_id": str(message.id),
        "channel_id": str(message.channel.id),
        "author": user_ref(author) if author is not None else None,
        "content": message.content or "",
        "guild_id": str(guild.id) if guild is not None else None,
        "mentions": [user_ref(u) for u in message.mentions],
        "role_mentions": [str(r) for r in message.raw_role_mentions],
        "attachments": [a.url for a in message.attachments],
        "is_private": isinstance(message.channel, discord.DMChannel),
    }


def created(message: discord.Message) -> tuple[str, object]:
    return message_create(**message_fields(message))


def edited(message: discord.Message) -> tuple[str, object]:
    return message_update(**message_fields(message))


def chat_message(message: discord.Message) -> ChatMessage:
    """Plain ChatMessage for a fetched message (no event type attached)."""
    _, evt = created(message)
    return evt  # type: ignore[return-value]


def reaction(payload: discord.RawReactionActionEvent, user: Any | None) -> tuple[str, object]:
    emoji = payload.emoji
    return reaction_add(
        str(payload.channel_id),
        str(payload.message_id),
        user_ref(user) if user is not None else None,
        emoji.name or "",
        emoji_id=str(emoji.id) if emoji.id else None,
        guild_id=str(payload.guild_id) if payload.guild_id else None,
    )


def member_updated(member: discord.Member) -> tuple[str, object]:
    return member_update(member_record(member))


def presence_changed(member: discord.Member) -> tuple[str, object]:
    return presence_update(str(member.id), status_of(member.status))


def member_removed(payload: discord.RawMemberRemoveEvent) -> tuple[str, object]:
    return member_remove(str(payload.user.id))


def typing_started(payload: discord.RawTypingEvent) -> tuple[str, object]:
    return typing_start(str(payload.user_id), str(payload.channel_id))
