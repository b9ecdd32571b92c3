"""Identity mapping between Discord users and IRC nicks, and avatar lookup."""

from dibridge.identity.avatar import avatar_url, find_avatar
from dibridge.identity.mapper import IdentityMapper, IrcIdentity, LocalIdentityMapper

__all__ = ["IdentityMapper", "IrcIdentity", "LocalIdentityMapper", "avatar_url", "find_avatar"]
