"""Tests for the presence reconciler."""

from __future__ import annotations

import asyncio

import pytest

from dibridge.events import UserFact
from dibridge.gateway.presence import PresenceReconciler
from dibridge.state.base import Status
from tests.mocks import FakeGuildState, drain, member


@pytest.fixture
def state() -> FakeGuildState:
    s = FakeGuildState()
    s.add_member(member("1", "alice", nick="Ally"), Status.ONLINE)
    s.add_member(member("2", "bob"), Status.OFFLINE)
    s.add_member(member("3", "carol"), Status.IDLE)
    s.add_member(member("4", "dave"), None)  # no presence synced yet
    return s


@pytest.fixture
def queues() -> tuple[asyncio.Queue, asyncio.Queue]:
    return asyncio.Queue(), asyncio.Queue()


@pytest.fixture
def reconciler(state: FakeGuildState, queues) -> PresenceReconciler:
    facts, removals = queues
    return PresenceReconciler(state, facts, removals)


def full_fact(user_id: str, username: str, nick: str) -> UserFact:
    return UserFact(id=user_id, username=username, discriminator="0", nick=nick, bot=False, online=True)


class TestPresenceUpdate:
    def test_offline_emits_minimal_fact(self, reconciler, queues) -> None:
        reconciler.handle_presence_update("1", Status.OFFLINE, force_online=False)
        facts = drain(queues[0])
        assert facts == [UserFact(id="1", online=False)]
        assert facts[0].username is None
        assert facts[0].is_offline_only

    def test_offline_forced_resolves_member(self, reconciler, queues) -> None:
        reconciler.handle_presence_update("2", Status.OFFLINE, force_online=True)
        assert drain(queues[0]) == [full_fact("2", "bob", "bob")]

    def test_online_resolves_member(self, reconciler, queues) -> None:
        reconciler.on_presence_update("1", Status.ONLINE)
        assert drain(queues[0]) == [full_fact("1", "alice", "Ally")]

    def test_unknown_member_dropped(self, reconciler, queues) -> None:
        reconciler.on_presence_update("99", Status.ONLINE)
        assert drain(queues[0]) == []

    def test_unexpected_lookup_failure_dropped(self, reconciler, state, queues) -> None:
        state.broken.add("1")
        reconciler.on_presence_update("1", Status.DND)
        assert drain(queues[0]) == []


class TestMemberUpdate:
    def test_online_member_emits_full_fact(self, reconciler, state, queues) -> None:
        reconciler.on_member_update(state.member("3"))
        assert drain(queues[0]) == [full_fact("3", "carol", "carol")]

    def test_offline_member_emits_nothing(self, reconciler, state, queues) -> None:
        reconciler.on_member_update(state.member("2"))
        assert drain(queues[0]) == []

    def test_member_without_presence_skipped(self, reconciler, state, queues) -> None:
        reconciler.on_member_update(state.member("4"))
        assert drain(queues[0]) == []

    def test_presence_failure_skipped(self, reconciler, state, queues) -> None:
        rec = state.member("1")
        state.broken.add("1")
        reconciler.on_member_update(rec)
        assert drain(queues[0]) == []

    def test_members_chunk(self, reconciler, state, queues) -> None:
        reconciler.on_members_chunk(state.members())
        facts = drain(queues[0])
        assert [f.id for f in facts] == ["1", "3"]
        assert all(f.online for f in facts)


class TestTyping:
    def test_typing_forces_online(self, reconciler, queues) -> None:
        reconciler.on_typing_start("2")
        assert drain(queues[0]) == [full_fact("2", "bob", "bob")]

    def test_typing_without_presence(self, reconciler, queues) -> None:
        reconciler.on_typing_start("4")
        assert drain(queues[0]) == [full_fact("4", "dave", "dave")]

    def test_typing_unknown_user(self, reconciler, queues) -> None:
        reconciler.on_typing_start("99")
        assert drain(queues[0]) == []


def test_member_remove_is_separate_signal(reconciler, queues) -> None:
    reconciler.on_member_remove("1")
    assert drain(queues[0]) == []
    assert drain(queues[1]) == ["1"]
