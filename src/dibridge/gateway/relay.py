"""Relay: Discord chat events -> NormalizedMessage queue for the IRC side."""

from __future__ import annotations

import asyncio
from typing import Protocol

from loguru import logger

from dibridge.core.constants import PING, PM_HELP, PONG, REACTION_CONTEXT_LENGTH
from dibridge.core.errors import MentionResolutionError
from dibridge.events import ChatMessage, NormalizedMessage, ReactionAdd
from dibridge.formatting.discord_to_irc import translate_text
from dibridge.formatting.message_shape import classify, pm_target_from_content, truncate
from dibridge.gateway.guard import BridgeIdentity, should_relay
from dibridge.identity.mapper import IdentityMapper
from dibridge.state.base import GuildState


class ChatClient(Protocol):
    """The few Discord calls the relay makes itself."""

    async def send_message(self, channel_id: str, content: str) -> None: ...

    async def fetch_message(self, channel_id: str, message_id: str) -> ChatMessage | None: ...


class MessageRelay:
    """Filters, translates and classifies chat events, then queues them for IRC."""

    def __init__(
        self,
        state: GuildState,
        identity: IdentityMapper,
        bridge_identity: BridgeIdentity,
        client: ChatClient,
        messages: asyncio.Queue[NormalizedMessage],
    ) -> None:
        self._state = state
        self._identity = identity
        self._bridge = bridge_identity
        self._client = client
        self._messages = messages

    def _translate(self, msg: ChatMessage) -> str:
        return translate_text(msg.content, msg.mentions, msg.role_mentions, self._state, self._identity)

    async def _reply(self, channel_id: str, content: str) -> None:
        try:
            await self._client.send_message(channel_id, content)
        except Exception as exc:
            logger.warning("Could not reply on Discord channel {}: {}", channel_id, exc)

    async def handle_message(self, msg: ChatMessage) -> None:
        """Handle a message create or edit."""
        author = msg.author
        if author is None or not should_relay(author.id, self._bridge):
            logger.debug("Dropping message {} from {}", msg.message_id, author.id if author else None)
            return

        if msg.content == PING:
            await self._reply(msg.channel_id, PONG)

        shape = classify(self._translate(msg), msg.content, msg.is_edit)
        text = shape.text

        pm_target = ""
        if msg.is_private:
            pm_target, text = pm_target_from_content(text)
            if not pm_target:
                await self._reply(msg.channel_id, PM_HELP)
                return

        if msg.content.strip():
            self._messages.put_nowait(
                NormalizedMessage(
                    message_id=msg.message_id,
                    channel_id=msg.channel_id,
                    author=author,
                    content=text,
                    guild_id=msg.guild_id,
                    is_action=shape.is_action,
                    is_edit=shape.is_edit,
                    pm_target=pm_target,
                    attachments=msg.attachments,
                )
            )
            logger.info(
                "Discord message bridged: channel={} author={} edit={} pm={}",
                msg.channel_id,
                author.username,
                shape.is_edit,
                pm_target or "-",
            )

        for url in msg.attachments:
            self._messages.put_nowait(
                NormalizedMessage(
                    message_id=msg.message_id,
                    channel_id=msg.channel_id,
                    author=author,
                    content=url,
                    guild_id=msg.guild_id,
                    is_action=shape.is_action,
                    pm_target=pm_target,
                )
            )

    async def _reaction_target(self, evt: ReactionAdd) -> str:
        """`` to <author> content...`` for the reacted-to message, or '' if unavailable."""
        try:
            original = await self._client.fetch_message(evt.channel_id, evt.message_id)
        except Exception as exc:
            logger.debug("Could not fetch reacted message {}: {}", evt.message_id, exc)
            return ""
        if original is None or original.author is None:
            return ""
        try:
            content = self._translate(original)
        except MentionResolutionError as exc:
            logger.debug("Could not translate reacted message {}: {}", evt.message_id, exc)
            return ""
        return f" to <{original.author.username}> {truncate(content, REACTION_CONTEXT_LENGTH)}"

    async def handle_reaction(self, evt: ReactionAdd) -> None:
        """Relay a reaction add as an action message."""
        user = evt.user
        if user is None or not should_relay(user.id, self._bridge):
            logger.debug("Dropping reaction on {} from {}", evt.message_id, user.id if user else None)
            return

        emoji = f":{evt.emoji_name}:" if evt.emoji_id else evt.emoji_name
        target = await self._reaction_target(evt)
        self._messages.put_nowait(
            NormalizedMessage(
                message_id=evt.message_id,
                channel_id=evt.channel_id,
                author=user,
                content=f"reacted with {emoji}{target}",
                guild_id=evt.guild_id,
                is_action=True,
            )
        )
        logger.info("Discord reaction bridged: channel={} author={} emoji={}", evt.channel_id, user.username, emoji)
