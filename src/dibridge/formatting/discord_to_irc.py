"""Convert raw Discord message text to plain text for IRC.

Passes run in a fixed order: user mentions, mentionable ``<&id>`` roles, channel
mentions, ``<@&id>`` roles, line endings, custom emotes. Later passes must not see
tokens produced by earlier ones, and emote syntax never overlaps mention syntax.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from loguru import logger

from dibridge.core.constants import DELETED_CHANNEL, DELETED_ROLE
from dibridge.core.errors import MentionResolutionError, StateLookupError, StateNotFound
from dibridge.events import UserFact
from dibridge.state.base import ChannelKind, GuildState, UserRef

if TYPE_CHECKING:
    from dibridge.identity.mapper import IdentityMapper

_CHANNEL_MENTION = re.compile(r"<#(\d+)>")
_ROLE_MENTION = re.compile(r"<@&(\d+)>")
_EMOTE = re.compile(r"<a?(:\w+:)\d+>")


def _irc_name_for(user: UserRef, state: GuildState, identity: IdentityMapper) -> str:
    """Existing IRC nick for this Discord user, or a freshly generated one."""
    nick = identity.nick_for(user.id)
    if nick:
        logger.info(
            "Converted mention using existing IRC identity: discord={} id={} irc={}",
            user.username,
            user.id,
            nick,
        )
        return nick

    display = user.username
    try:
        member = state.member(user.id)
    except StateLookupError:
        member = None
    if member is not None and member.nick:
        display = member.nick

    nick = identity.generate_nick(
        UserFact(
            id=user.id,
            username=user.username,
            discriminator=user.discriminator,
            nick=display,
            bot=user.bot,
            online=False,
        )
    )
    logger.info(
        "Could not convert mention using existing IRC identity: discord={} id={} irc={}",
        user.username,
        user.id,
        nick,
    )
    return nick


def _replace_user_mentions(
    content: str,
    mentions: Iterable[UserRef],
    state: GuildState,
    identity: IdentityMapper,
) -> str:
    for user in mentions:
        name = _irc_name_for(user, state, identity)
        content = content.replace(f"<@{user.id}>", name).replace(f"<@!{user.id}>", name)
    return content


def _replace_mentionable_roles(content: str, role_ids: Iterable[str], state: GuildState) -> str:
    for role_id in role_ids:
        try:
            role = state.role(role_id)
        except StateLookupError:
            continue
        if not role.mentionable:
            continue
        content = content.replace(f"<&{role.id}>", f"@{role.name}")
    return content


def _replace_channels(content: str, state: GuildState) -> str:
    def repl(match: re.Match[str]) -> str:
        channel_id = match.group(1)
        try:
            channel = state.channel(channel_id)
        except StateNotFound:
            return DELETED_CHANNEL
        except StateLookupError as exc:
            raise MentionResolutionError(
                f"Channel mention failed for {match.group(0)}",
                code="channel_mention",
                details={"channel_id": channel_id},
                original_error=exc,
            ) from exc
        if channel.kind is ChannelKind.VOICE:
            return match.group(0)
        return f"#{channel.name}"

    return _CHANNEL_MENTION.sub(repl, content)


def _replace_roles(content: str, state: GuildState) -> str:
    def repl(match: re.Match[str]) -> str:
        role_id = match.group(1)
        try:
            role = state.role(role_id)
        except StateNotFound:
            return DELETED_ROLE
        except StateLookupError as exc:
            raise MentionResolutionError(
                f"Role mention failed for {match.group(0)}",
                code="role_mention",
                details={"role_id": role_id},
                original_error=exc,
            ) from exc
        return f"@{role.name}"

    return _ROLE_MENTION.sub(repl, content)


def normalize_newlines(content: str) -> str:
    """Collapse CRLF and bare CR into LF."""
    return content.replace("\r\n", "\n").replace("\r", "\n")


def strip_emotes(content: str) -> str:
    """<:name:123> and <a:name:123> -> :name:"""
    return _EMOTE.sub(r"\1", content)


def translate_text(
    content: str,
    mentions: Iterable[UserRef],
    role_mentions: Iterable[str],
    state: GuildState,
    identity: IdentityMapper,
) -> str:
    """Translate raw Discord text to IRC-ready plain text.

    Raises ``MentionResolutionError`` when a channel or role mention fails for any
    reason other than the entity being gone.
    """
    content = _replace_user_mentions(content, mentions, state, identity)
    content = _replace_mentionable_roles(content, role_mentions, state)
    content = _replace_channels(content, state)
    content = _replace_roles(content, state)
    content = normalize_newlines(content)
    return strip_emotes(content)
