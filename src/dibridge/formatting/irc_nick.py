"""IRC nickname alphabet (RFC 2812 letters, digits, specials and '-')."""

from __future__ import annotations

import re

_NICK_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-[]\\`_^{|}")
_NON_NICK_RE = re.compile(r"[^a-zA-Z0-9_\-\[\]\\`^{}|]")


def is_nick_char(c: str) -> bool:
    return c in _NICK_CHARS


def is_valid_nick(nick: str) -> bool:
    """True for a non-empty string made only of nick characters."""
    return bool(nick) and all(is_nick_char(c) for c in nick)


def sanitize_nick(nick: str, *, max_length: int = 30) -> str:
    """Strip non-nick characters; falls back to 'user'."""
    sanitized = _NON_NICK_RE.sub("", nick)
    return (sanitized or "user")[:max_length]
