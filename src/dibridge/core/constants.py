"""Protocol constants."""

from __future__ import annotations

from typing import Literal

EventName = Literal[
    "message_create",
    "message_update",
    "reaction_add",
    "members_chunk",
    "member_update",
    "member_remove",
    "presence_update",
    "typing_start",
]

MESSAGE_EVENTS: tuple[EventName, ...] = ("message_create", "message_update", "reaction_add")
PRESENCE_EVENTS: tuple[EventName, ...] = (
    "members_chunk",
    "member_update",
    "member_remove",
    "presence_update",
    "typing_start",
)

DELETED_CHANNEL = "#deleted-channel"
DELETED_ROLE = "@deleted-role"

PING = "ping"
PONG = "Pong!"
PM_HELP = "Don't know who that is. Can't PM. Try 'name, message here'"

EDIT_PREFIX = "[edit]: "
ACTION_PREFIX = "/me "

REACTION_CONTEXT_LENGTH = 40

AVATAR_ENDPOINT = "https://cdn.discordapp.com/avatars/{user_id}/{avatar}.png"
