"""Gateway: event router, self-echo guard, message relay, presence reconciler."""

from dibridge.gateway.guard import BridgeIdentity, should_relay
from dibridge.gateway.presence import PresenceReconciler
from dibridge.gateway.relay import ChatClient, MessageRelay
from dibridge.gateway.router import EventRouter, build_router

__all__ = [
    "BridgeIdentity",
    "ChatClient",
    "EventRouter",
    "MessageRelay",
    "PresenceReconciler",
    "build_router",
    "should_relay",
]
