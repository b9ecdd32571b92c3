"""Re-export from core.errors."""

from dibridge.core.errors import (
    BridgeConfigurationError,
    BridgeError,
    MentionResolutionError,
    StateLookupError,
    StateNotFound,
)

__all__ = [
    "BridgeConfigurationError",
    "BridgeError",
    "MentionResolutionError",
    "StateLookupError",
    "StateNotFound",
]
