"""Discord -> IRC text translation and message shape detection."""

from dibridge.formatting.discord_to_irc import translate_text
from dibridge.formatting.irc_nick import is_nick_char, is_valid_nick, sanitize_nick
from dibridge.formatting.message_shape import MessageShape, classify, pm_target_from_content, truncate

__all__ = [
    "MessageShape",
    "classify",
    "is_nick_char",
    "is_valid_nick",
    "pm_target_from_content",
    "sanitize_nick",
    "translate_text",
    "truncate",
]
