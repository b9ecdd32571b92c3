"""Best-effort resolution of a plain username to a guild member's avatar."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from dibridge.core.constants import AVATAR_ENDPOINT
from dibridge.state.base import MemberRecord


def avatar_url(member: MemberRecord) -> str:
    """CDN avatar URL for a member, or '' when the user has no avatar."""
    if not member.user.avatar:
        return ""
    return AVATAR_ENDPOINT.format(user_id=member.user.id, avatar=member.user.avatar)


def _unique_match(
    members: list[MemberRecord], matches: Callable[[str | None], bool]
) -> tuple[MemberRecord | None, bool]:
    """Return (member, ambiguous) for the members whose nick or username matches."""
    found: MemberRecord | None = None
    for member in members:
        if not (matches(member.nick) or matches(member.user.username)):
            continue
        if found is not None:
            return None, True
        found = member
    return found, False


def find_avatar(members: Iterable[MemberRecord], username: str) -> str:
    """Avatar URL of the single member called ``username``; '' if none or ambiguous.

    Exact matches against nickname or username are tried first, then
    case-insensitive ones. More than one match at either stage is ambiguous.
    """
    members = list(members)

    found, ambiguous = _unique_match(members, lambda name: name == username)
    if ambiguous:
        return ""
    if found is None:
        folded = username.casefold()
        found, ambiguous = _unique_match(
            members, lambda name: name is not None and name.casefold() == folded
        )
        if ambiguous or found is None:
            return ""
    return avatar_url(found)
