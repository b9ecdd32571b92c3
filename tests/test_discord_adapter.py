"""Tests for the Discord adapter."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from dibridge.adapters.discord import DiscordAdapter
from dibridge.adapters.discord import handlers as discord_handlers
from dibridge.config import Config
from dibridge.core.constants import MESSAGE_EVENTS, PRESENCE_EVENTS
from dibridge.events import ChatMessage, MembersChunk
from dibridge.identity import LocalIdentityMapper
from tests.mocks import drain

GUILD_ID = 42
BOT_ID = 900


def fake_user(user_id: int, name: str):
    return SimpleNamespace(id=user_id, name=name, discriminator="0", bot=False, avatar=None, nick=None)


def fake_message(content: str = "hi", *, guild_id: int | None = GUILD_ID, author_id: int = 1, dm: bool = False):
    channel = MagicMock(spec=discord.DMChannel if dm else discord.TextChannel)
    channel.id = 20
    msg = MagicMock()
    msg.id = 500
    msg.channel = channel
    msg.author = fake_user(author_id, "alice")
    msg.content = content
    msg.guild = SimpleNamespace(id=guild_id) if guild_id is not None else None
    msg.mentions = []
    msg.raw_role_mentions = []
    msg.attachments = [SimpleNamespace(url="https://cdn.example/a.png")]
    return msg


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("BRIDGE_DISCORD_TOKEN", "BRIDGE_GUILD_ID", "BRIDGE_SIMPLE_MODE"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def guild():
    g = MagicMock()
    g.id = GUILD_ID
    g.chunked = True
    g.members = [fake_user(1, "alice")]
    g.webhooks = AsyncMock(return_value=[])
    g.get_member.return_value = SimpleNamespace(**vars(fake_user(1, "alice")), status=discord.Status.online)
    return g


@pytest.fixture
def client(guild):
    c = MagicMock()
    c.user = SimpleNamespace(id=BOT_ID)
    c.get_guild.return_value = guild
    c.is_closed.return_value = False
    c.close = AsyncMock()
    return c


@pytest.fixture
def queues():
    return asyncio.Queue(), asyncio.Queue(), asyncio.Queue()


def make_adapter(client, queues, **config) -> DiscordAdapter:
    messages, facts, removals = queues
    cfg = Config({"guild_id": str(GUILD_ID), **config})
    return DiscordAdapter(cfg, LocalIdentityMapper(), messages, facts, removals, client=client)


class TestHandlers:
    def test_message_fields(self):
        fields = discord_handlers.message_fields(fake_message())
        assert fields["message_id"] == "500"
        assert fields["guild_id"] == str(GUILD_ID)
        assert fields["attachments"] == ["https://cdn.example/a.png"]
        assert not fields["is_private"]

    def test_dm_is_private(self):
        assert discord_handlers.message_fields(fake_message(guild_id=None, dm=True))["is_private"]

    def test_reaction(self):
        payload = SimpleNamespace(
            channel_id=20,
            message_id=500,
            guild_id=GUILD_ID,
            emoji=SimpleNamespace(name="party", id=77),
        )
        type_name, evt = discord_handlers.reaction(payload, fake_user(1, "alice"))
        assert type_name == "reaction_add"
        assert evt.emoji_id == "77"
        assert evt.user.username == "alice"


class TestRoutes:
    def test_full_mode(self, client, queues):
        adapter = make_adapter(client, queues)
        assert adapter.name == "discord"
        assert adapter.router.routes == [*MESSAGE_EVENTS, *PRESENCE_EVENTS]

    def test_simple_mode(self, client, queues):
        adapter = make_adapter(client, queues, simple_mode=True)
        assert adapter.router.routes == list(MESSAGE_EVENTS)

    def test_configured_webhooks_guarded(self, client, queues):
        adapter = make_adapter(client, queues, webhook_ids=["77"])
        assert adapter.bridge_identity.webhook_ids == {"77"}


class TestReady:
    @pytest.mark.asyncio
    async def test_ready_records_identity_and_syncs_members(self, client, guild, queues):
        guild.webhooks.return_value = [
            SimpleNamespace(id=7, name="(dibridge) #general"),
            SimpleNamespace(id=8, name="someone else's hook"),
        ]
        adapter = make_adapter(client, queues)
        adapter.router.publish = AsyncMock()

        await adapter._on_ready()

        assert adapter.bridge_identity.user_id == str(BOT_ID)
        assert adapter.bridge_identity.webhook_ids == {"7"}
        type_name, evt = adapter.router.publish.await_args[0][0]
        assert type_name == "members_chunk"
        assert isinstance(evt, MembersChunk)
        assert [m.id for m in evt.members] == ["1"]

    @pytest.mark.asyncio
    async def test_ready_in_simple_mode_skips_members(self, client, queues):
        adapter = make_adapter(client, queues, simple_mode=True)
        adapter.router.publish = AsyncMock()
        await adapter._on_ready()
        adapter.router.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_webhook_listing_forbidden(self, client, guild, queues):
        guild.webhooks.side_effect = discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "no")
        adapter = make_adapter(client, queues, webhook_ids=["77"])
        await adapter._on_ready()
        assert adapter.bridge_identity.webhook_ids == {"77"}


class TestScope:
    @pytest.mark.asyncio
    async def test_other_guild_ignored(self, client, queues):
        adapter = make_adapter(client, queues)
        adapter.router.publish = AsyncMock()
        await adapter._on_message(fake_message(guild_id=7))
        adapter.router.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dm_in_scope(self, client, queues):
        adapter = make_adapter(client, queues)
        adapter.router.publish = AsyncMock()
        await adapter._on_message(fake_message(guild_id=None, dm=True))
        adapter.router.publish.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_dm_typing_ignored(self, client, queues):
        adapter = make_adapter(client, queues)
        adapter.router.publish = AsyncMock()
        await adapter._on_raw_typing(SimpleNamespace(guild_id=None, user_id=1, channel_id=20))
        adapter.router.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_guild_typing_published(self, client, queues):
        adapter = make_adapter(client, queues)
        adapter.router.publish = AsyncMock()
        await adapter._on_raw_typing(SimpleNamespace(guild_id=GUILD_ID, user_id=1, channel_id=20))
        assert adapter.router.publish.await_args[0][0][0] == "typing_start"

    @pytest.mark.asyncio
    async def test_dm_reaction_ignored(self, client, queues):
        channel = MagicMock()
        channel.fetch_message = AsyncMock(return_value=fake_message("secret DM text", guild_id=None, dm=True))
        client.get_channel.return_value = channel
        adapter = make_adapter(client, queues)
        await adapter._on_ready()
        payload = SimpleNamespace(
            guild_id=None,
            channel_id=20,
            message_id=500,
            user_id=1,
            member=None,
            emoji=SimpleNamespace(name="👍", id=None),
        )

        await adapter._on_raw_reaction_add(payload)

        assert drain(queues[0]) == []
        channel.fetch_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_guild_reaction_relayed(self, client, queues):
        channel = MagicMock()
        channel.fetch_message = AsyncMock(return_value=fake_message("lunch?"))
        client.get_channel.return_value = channel
        adapter = make_adapter(client, queues)
        await adapter._on_ready()
        payload = SimpleNamespace(
            guild_id=GUILD_ID,
            channel_id=20,
            message_id=500,
            user_id=2,
            member=fake_user(2, "bob"),
            emoji=SimpleNamespace(name="👍", id=None),
        )

        await adapter._on_raw_reaction_add(payload)

        [out] = drain(queues[0])
        assert out.is_action
        assert out.content == "reacted with 👍 to <alice> lunch?"


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_message_relayed_after_ready(self, client, queues):
        adapter = make_adapter(client, queues)
        await adapter._on_ready()
        await adapter._on_message(fake_message("hello"))
        out = drain(queues[0])
        assert [m.content for m in out] == ["hello", "https://cdn.example/a.png"]

    @pytest.mark.asyncio
    async def test_message_before_ready_dropped(self, client, queues):
        adapter = make_adapter(client, queues)
        await adapter._on_message(fake_message("hello"))
        assert drain(queues[0]) == []

    @pytest.mark.asyncio
    async def test_own_message_dropped(self, client, queues):
        adapter = make_adapter(client, queues)
        await adapter._on_ready()
        await adapter._on_message(fake_message("hello", author_id=BOT_ID))
        assert drain(queues[0]) == []

    @pytest.mark.asyncio
    async def test_ready_reconciles_members(self, client, queues):
        adapter = make_adapter(client, queues)
        await adapter._on_ready()
        [fact] = drain(queues[1])
        assert fact.id == "1"
        assert fact.online


class TestChatClient:
    @pytest.mark.asyncio
    async def test_send_message(self, client, queues):
        channel = MagicMock()
        channel.send = AsyncMock()
        client.get_channel.return_value = channel
        adapter = make_adapter(client, queues)
        await adapter.send_message("20", "Pong!")
        channel.send.assert_awaited_once_with("Pong!")

    @pytest.mark.asyncio
    async def test_fetch_message_cached(self, client, queues):
        channel = MagicMock()
        channel.fetch_message = AsyncMock(return_value=fake_message("original"))
        client.get_channel.return_value = channel
        adapter = make_adapter(client, queues)

        first = await adapter.fetch_message("20", "500")
        second = await adapter.fetch_message("20", "500")

        assert isinstance(first, ChatMessage)
        assert first.content == "original"
        assert second is first
        channel.fetch_message.assert_awaited_once_with(500)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_without_token(self, client, queues):
        adapter = make_adapter(client, queues)
        await adapter.start()
        client.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_and_stop(self, client, queues, monkeypatch):
        monkeypatch.setenv("BRIDGE_DISCORD_TOKEN", "token")
        client.start = AsyncMock()
        adapter = make_adapter(client, queues)
        await adapter.start()
        await asyncio.sleep(0)
        client.start.assert_awaited_once_with("token")
        await adapter.stop()
        client.close.assert_awaited_once()
