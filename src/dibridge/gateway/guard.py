"""Self-echo guard shared by every message-class event."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BridgeIdentity:
    """The bridge's own Discord identities: its session user and its relay webhooks."""

    user_id: str | None = None
    webhook_ids: set[str] = field(default_factory=set)

    @property
    def ready(self) -> bool:
        return self.user_id is not None


def should_relay(author_id: str | None, identity: BridgeIdentity) -> bool:
    """False for unknown authors, before the session is ready, and for the bridge's own traffic."""
    if author_id is None or identity.user_id is None:
        return False
    if author_id == identity.user_id:
        return False
    return author_id not in identity.webhook_ids
