"""Event router: explicit routing table from event type to handler."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from loguru import logger

from dibridge.core.constants import MESSAGE_EVENTS, PRESENCE_EVENTS

if TYPE_CHECKING:
    from dibridge.gateway.presence import PresenceReconciler
    from dibridge.gateway.relay import MessageRelay

Handler = Callable[[Any], Awaitable[None] | None]


class EventRouter:
    """Dispatches typed events to their handler. Failures stay scoped to one event."""

    def __init__(self) -> None:
        self._routes: dict[str, Handler] = {}

    def register(self, type_name: str, handler: Handler) -> None:
        if type_name in self._routes:
            raise ValueError(f"handler already registered for {type_name!r}")
        self._routes[type_name] = handler

    @property
    def routes(self) -> list[str]:
        return list(self._routes)

    def handles(self, type_name: str) -> bool:
        return type_name in self._routes

    async def dispatch(self, type_name: str, evt: object) -> bool:
        """Run the handler for ``type_name``. Returns False if nothing handled it."""
        handler = self._routes.get(type_name)
        if handler is None:
            logger.debug("No route for event {}", type_name)
            return False
        try:
            result = handler(evt)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.exception("Failed to handle {} event: {}", type_name, exc)
            return False
        return True

    async def publish(self, typed_event: tuple[str, object]) -> bool:
        """Dispatch a ``(type_name, evt)`` pair as returned by the event factories."""
        type_name, evt = typed_event
        return await self.dispatch(type_name, evt)


def build_router(relay: MessageRelay, reconciler: PresenceReconciler | None = None) -> EventRouter:
    """Routing table for the relay and, unless in simple mode, the presence reconciler."""
    router = EventRouter()
    handlers: dict[str, Handler] = {
        "message_create": relay.handle_message,
        "message_update": relay.handle_message,
        "reaction_add": relay.handle_reaction,
    }
    for name in MESSAGE_EVENTS:
        router.register(name, handlers[name])

    if reconciler is not None:
        presence_handlers: dict[str, Handler] = {
            "members_chunk": lambda evt: reconciler.on_members_chunk(evt.members),
            "member_update": lambda evt: reconciler.on_member_update(evt.member),
            "member_remove": lambda evt: reconciler.on_member_remove(evt.user_id),
            "presence_update": lambda evt: reconciler.on_presence_update(evt.user_id, evt.status),
            "typing_start": lambda evt: reconciler.on_typing_start(evt.user_id),
        }
        for name in PRESENCE_EVENTS:
            router.register(name, presence_handlers[name])
    return router
