"""Discord adapter: discord.py client -> typed events -> router."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import discord
from cachetools import TTLCache
from loguru import logger

from dibridge.adapters.base import AdapterBase
from dibridge.adapters.discord import handlers as discord_handlers
from dibridge.config import Config
from dibridge.events import ChatMessage, NormalizedMessage, UserFact, members_chunk
from dibridge.gateway import BridgeIdentity, EventRouter, MessageRelay, PresenceReconciler, build_router
from dibridge.identity.mapper import IdentityMapper
from dibridge.state.discord_state import DiscordGuildState, member_record


def _intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    intents.members = True
    intents.presences = True
    intents.typing = True
    return intents


class DiscordAdapter(AdapterBase):
    """Receives Discord gateway events and feeds the relay and presence reconciler."""

    def __init__(
        self,
        config: Config,
        identity: IdentityMapper,
        messages: asyncio.Queue[NormalizedMessage],
        facts: asyncio.Queue[UserFact],
        removals: asyncio.Queue[str],
        *,
        client: discord.Client | None = None,
    ) -> None:
        self._config = config
        self._guild_id = config.guild_id
        self._client = client or discord.Client(intents=_intents())
        self._client_task: asyncio.Task | None = None
        self._message_cache: TTLCache[str, ChatMessage] = TTLCache(maxsize=256, ttl=300)

        self.state = DiscordGuildState(self._client, self._guild_id)
        self.bridge_identity = BridgeIdentity(webhook_ids=set(config.webhook_ids))
        relay = MessageRelay(self.state, identity, self.bridge_identity, self, messages)
        reconciler = None if config.simple_mode else PresenceReconciler(self.state, facts, removals)
        self.router: EventRouter = build_router(relay, reconciler)

    @property
    def name(self) -> str:
        return "discord"

    def _in_scope(self, guild_id: Any) -> bool:
        """DMs and the bridged guild are in scope; other guilds are not."""
        return guild_id is None or str(guild_id) == self._guild_id

    async def _get_channel(self, channel_id: str) -> Any:
        return self._client.get_channel(int(channel_id)) or await self._client.fetch_channel(int(channel_id))

    async def send_message(self, channel_id: str, content: str) -> None:
        channel = await self._get_channel(channel_id)
        await channel.send(content)

    async def fetch_message(self, channel_id: str, message_id: str) -> ChatMessage | None:
        """Fetch a message for reaction context; cached for a few minutes."""
        cached = self._message_cache.get(message_id)
        if cached is not None:
            return cached
        channel = await self._get_channel(channel_id)
        if not hasattr(channel, "fetch_message"):
            return None
        message = await channel.fetch_message(int(message_id))
        result = discord_handlers.chat_message(message)
        self._message_cache[message_id] = result
        return result

    async def _discover_webhooks(self, guild: discord.Guild) -> None:
        """Record the bridge's relay webhooks so their messages are not echoed back."""
        prefix = self._config.webhook_prefix
        try:
            webhooks = await guild.webhooks()
        except discord.HTTPException as exc:
            logger.warning("Could not list guild webhooks (relay echo guard uses config only): {}", exc)
            return
        for webhook in webhooks:
            if webhook.name and webhook.name.startswith(prefix):
                self.bridge_identity.webhook_ids.add(str(webhook.id))
        logger.info("Relay webhooks known: {}", len(self.bridge_identity.webhook_ids))

    async def _on_ready(self) -> None:
        user = self._client.user
        self.bridge_identity.user_id = str(user.id) if user else None
        logger.info("Discord client ready: {}", user)

        guild = self._client.get_guild(int(self._guild_id))
        if guild is None:
            logger.warning("Guild {} not visible to the bot", self._guild_id)
            return
        await self._discover_webhooks(guild)

        if not self.router.handles("members_chunk"):
            return
        if not guild.chunked:
            try:
                await guild.chunk()
            except discord.HTTPException as exc:
                logger.warning("Could not request guild members: {}", exc)
                return
        await self.router.publish(members_chunk(member_record(m) for m in guild.members))

    async def _on_message(self, message: discord.Message) -> None:
        if not self._in_scope(message.guild.id if message.guild else None):
            return
        await self.router.publish(discord_handlers.created(message))

    async def _on_raw_message_edit(self, payload: discord.RawMessageUpdateEvent) -> None:
        if not self._in_scope(payload.guild_id):
            return
        message = getattr(payload, "message", None)
        if message is None:
            try:
                channel = await self._get_channel(str(payload.channel_id))
                message = await channel.fetch_message(payload.message_id)
            except discord.HTTPException as exc:
                logger.debug("Could not fetch edited message {}: {}", payload.message_id, exc)
                return
        self._message_cache.pop(str(payload.message_id), None)
        await self.router.publish(discord_handlers.edited(message))

    async def _fetch_user(self, user_id: int) -> Any | None:
        try:
            return self._client.get_user(user_id) or await self._client.fetch_user(user_id)
        except discord.HTTPException as exc:
            logger.debug("Could not fetch user {}: {}", user_id, exc)
            return None

    async def _on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        # Only guild reactions are relayed; DM reactions stay private.
        if payload.guild_id is None or not self._in_scope(payload.guild_id):
            return
        user = payload.member or await self._fetch_user(payload.user_id)
        await self.router.publish(discord_handlers.reaction(payload, user))

    async def _on_member_update(self, before: discord.Member, after: discord.Member) -> None:
        if not self._in_scope(after.guild.id):
            return
        await self.router.publish(discord_handlers.member_updated(after))

    async def _on_presence_update(self, before: discord.Member, after: discord.Member) -> None:
        if not self._in_scope(after.guild.id):
            return
        await self.router.publish(discord_handlers.presence_changed(after))

    async def _on_raw_member_remove(self, payload: discord.RawMemberRemoveEvent) -> None:
        if not self._in_scope(payload.guild_id):
            return
        await self.router.publish(discord_handlers.member_removed(payload))

    async def _on_raw_typing(self, payload: discord.RawTypingEvent) -> None:
        # DM typing carries no guild membership to reconcile.
        if payload.guild_id is None or not self._in_scope(payload.guild_id):
            return
        await self.router.publish(discord_handlers.typing_started(payload))

    def _register_events(self) -> None:
        client = self._client

        @client.event
        async def on_ready() -> None:
            await self._on_ready()

        @client.event
        async def on_message(message: discord.Message) -> None:
            await self._on_message(message)

        @client.event
        async def on_raw_message_edit(payload: discord.RawMessageUpdateEvent) -> None:
            await self._on_raw_message_edit(payload)

        if self._config.relay_reactions:

            @client.event
            async def on_raw_reaction_add(payload: discord.RawReactionActionEvent) -> None:
                await self._on_raw_reaction_add(payload)

        if self._config.simple_mode:
            return

        @client.event
        async def on_member_update(before: discord.Member, after: discord.Member) -> None:
            await self._on_member_update(before, after)

        @client.event
        async def on_presence_update(before: discord.Member, after: discord.Member) -> None:
            await self._on_presence_update(before, after)

        @client.event
        async def on_raw_member_remove(payload: discord.RawMemberRemoveEvent) -> None:
            await self._on_raw_member_remove(payload)

        @client.event
        async def on_raw_typing(payload: discord.RawTypingEvent) -> None:
            await self._on_raw_typing(payload)

    async def start(self) -> None:
        """Register handlers and start the Discord client."""
        token = self._config.discord_token
        if not token:
            logger.warning("BRIDGE_DISCORD_TOKEN not set; Discord adapter disabled")
            return
        self._register_events()
        self._client_task = asyncio.create_task(self._client.start(token))
        logger.info("Discord adapter started: guild={} routes={}", self._guild_id, self.router.routes)

    async def stop(self) -> None:
        if not self._client.is_closed():
            await self._client.close()
        if self._client_task:
            self._client_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._client_task
        self._client_task = None
