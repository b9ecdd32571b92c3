"""Presence reconciler: membership, presence and typing events -> UserFact stream."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from loguru import logger

from dibridge.core.errors import StateLookupError, StateNotFound
from dibridge.events import UserFact
from dibridge.state.base import GuildState, MemberRecord, Status


class PresenceReconciler:
    """Merges membership, presence and typing events into one online/offline fact per user.

    Never raises: lookup failures are logged and the fact is dropped.
    """

    def __init__(
        self,
        state: GuildState,
        facts: asyncio.Queue[UserFact],
        removals: asyncio.Queue[str],
    ) -> None:
        self._state = state
        self._facts = facts
        self._removals = removals

    def on_members_chunk(self, members: Iterable[MemberRecord]) -> None:
        for member in members:
            self.handle_member_update(member, force_online=False)

    def on_member_update(self, member: MemberRecord) -> None:
        self.handle_member_update(member, force_online=False)

    def on_presence_update(self, user_id: str, status: Status) -> None:
        self.handle_presence_update(user_id, status, force_online=False)

    def on_typing_start(self, user_id: str) -> None:
        """Typing means the user is active whatever the cached presence says."""
        status = Status.OFFLINE
        try:
            status = self._state.presence(user_id)
        except StateLookupError as exc:
            logger.debug("Get presence for typing user {} failed: {}", user_id, exc)
        self.handle_presence_update(user_id, status, force_online=True)

    def on_member_remove(self, user_id: str) -> None:
        logger.debug("Member {} left the guild", user_id)
        self._removals.put_nowait(user_id)

    def handle_presence_update(self, user_id: str, status: Status, force_online: bool) -> None:
        if not force_online and status is Status.OFFLINE:
            logger.debug("PRESENCE offline: id={}", user_id)
            self._facts.put_nowait(UserFact(id=user_id, online=False))
            return
        logger.debug("PRESENCE {}: id={} forced={}", status.value, user_id, force_online)

        try:
            member = self._state.member(user_id)
        except StateNotFound:
            logger.debug("Member {} not in state yet; dropping presence update", user_id)
            return
        except StateLookupError as exc:
            logger.error("Get member {} from state failed: {}", user_id, exc)
            return

        self.handle_member_update(member, force_online)

    def handle_member_update(self, member: MemberRecord, force_online: bool) -> None:
        if not force_online:
            try:
                presence = self._state.presence(member.id)
            except StateNotFound:
                # Usual on first sync: members without a presence are offline.
                logger.debug("No presence for member {}; skipping", member.id)
                return
            except StateLookupError as exc:
                logger.error("Presence retrieval for member {} failed: {}", member.id, exc)
                return
            if presence is Status.OFFLINE:
                return

        self._facts.put_nowait(
            UserFact(
                id=member.id,
                username=member.user.username,
                discriminator=member.user.discriminator,
                nick=member.display_nick,
                bot=member.user.bot,
                online=True,
            )
        )
