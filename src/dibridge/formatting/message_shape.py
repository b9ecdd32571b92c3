"""Action, edit and private-message framing of translated text."""

from __future__ import annotations

from typing import NamedTuple

from dibridge.core.constants import ACTION_PREFIX, EDIT_PREFIX
from dibridge.formatting.irc_nick import is_valid_nick


class MessageShape(NamedTuple):
    is_action: bool
    is_edit: bool
    text: str


def is_action(raw: str, translated: str) -> bool:
    """Action messages look like ``_text_`` in the raw Discord source."""
    return len(translated) > 2 and raw.startswith("_") and raw.endswith("_")


def classify(translated: str, raw: str, was_edit: bool) -> MessageShape:
    """Derive action/edit framing.

    The action fact comes from the raw text; the underscores are then stripped from
    the translated text's own ends. Translation only rewrites ``<...>`` tokens, so the
    enclosing underscores are the same characters in both strings. Should the
    translated ends differ anyway, the message stays an action and its text is
    kept whole.
    """
    action = is_action(raw, translated)
    text = translated
    if action and text.startswith("_") and text.endswith("_"):
        text = text[1:-1]

    if was_edit:
        if action:
            text = ACTION_PREFIX + text
        text = EDIT_PREFIX + text

    return MessageShape(is_action=action, is_edit=was_edit, text=text)


def pm_target_from_content(content: str) -> tuple[str, str]:
    """Split ``"nick, message"`` into ``(nick, message)``.

    Returns ``("", "")`` when no valid IRC nick precedes the first comma.
    """
    nick, sep, rest = content.partition(",")
    if not sep or not is_valid_nick(nick):
        return "", ""
    return nick, rest.removeprefix(" ")


def truncate(text: str, limit: int) -> str:
    """Cut to ``limit`` characters, ending in '...' when shortened."""
    if len(text) <= limit:
        return text
    if limit > 3:
        limit -= 3
    return text[:limit] + "..."
