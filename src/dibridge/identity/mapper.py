"""Discord user -> IRC identity mapping.

``IdentityMapper`` is the read-only view the translator needs. ``LocalIdentityMapper``
is an in-memory implementation that consumes the reconciler's user and removal
queues; the real IRC connection pool plugs in behind the same protocol.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, replace
from typing import Protocol

from loguru import logger

from dibridge.events import UserFact
from dibridge.formatting.irc_nick import sanitize_nick


class IdentityMapper(Protocol):
    def nick_for(self, discord_id: str) -> str | None:
        """IRC nick already mapped to this Discord user, if any."""
        ...

    def generate_nick(self, user: UserFact) -> str:
        """Derive an IRC nick for a user that has no mapping yet."""
        ...


@dataclass(frozen=True)
class IrcIdentity:
    discord_id: str
    nick: str
    username: str
    discriminator: str | None
    display: str
    bot: bool
    online: bool


class LocalIdentityMapper:
    """In-memory identity mapping fed by UserFacts; latest fact wins."""

    def __init__(self, *, nick_suffix: str = "~d", max_length: int = 30) -> None:
        self._suffix = nick_suffix
        self._max_length = max_length
        self._identities: dict[str, IrcIdentity] = {}

    def nick_for(self, discord_id: str) -> str | None:
        ident = self._identities.get(discord_id)
        return ident.nick if ident else None

    def get(self, discord_id: str) -> IrcIdentity | None:
        return self._identities.get(discord_id)

    def identities(self) -> list[IrcIdentity]:
        return list(self._identities.values())

    def generate_nick(self, user: UserFact) -> str:
        base = user.nick or user.username or "user"
        room = max(self._max_length - len(self._suffix), 1)
        return sanitize_nick(base, max_length=room) + self._suffix

    def apply(self, fact: UserFact) -> None:
        """Fold one fact into the mapping."""
        existing = self._identities.get(fact.id)
        if fact.is_offline_only:
            if existing is None:
                logger.debug("Offline fact for unmapped user {}; ignoring", fact.id)
                return
            self._identities[fact.id] = replace(existing, online=False)
            return

        display = fact.nick or fact.username or ""
        if existing is not None and existing.display == display:
            nick = existing.nick
        else:
            nick = self.generate_nick(fact)
        self._identities[fact.id] = IrcIdentity(
            discord_id=fact.id,
            nick=nick,
            username=fact.username or "",
            discriminator=fact.discriminator,
            display=display,
            bot=fact.bot,
            online=fact.online,
        )
        if existing is None or existing.nick != nick:
            logger.info("Identity mapped: discord_id={} -> irc={}", fact.id, nick)

    def remove(self, discord_id: str) -> None:
        removed = self._identities.pop(discord_id, None)
        if removed is not None:
            logger.info("Identity removed: discord_id={} irc={}", discord_id, removed.nick)

    async def _consume_facts(self, queue: asyncio.Queue[UserFact]) -> None:
        while True:
            try:
                fact = await queue.get()
                self.apply(fact)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("Failed to apply user fact: {}", exc)

    async def _consume_removals(self, queue: asyncio.Queue[str]) -> None:
        while True:
            try:
                discord_id = await queue.get()
                self.remove(discord_id)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("Failed to remove identity: {}", exc)

    async def run(self, facts: asyncio.Queue[UserFact], removals: asyncio.Queue[str]) -> None:
        """Consume both queues until cancelled."""
        tasks = [
            asyncio.create_task(self._consume_facts(facts)),
            asyncio.create_task(self._consume_removals(removals)),
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
