"""Bridge domain exceptions."""

from __future__ import annotations


class BridgeError(Exception):
    """Base for bridge domain errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class BridgeConfigurationError(BridgeError):
    """Config validation or load failure."""


class StateLookupError(BridgeError):
    """Guild state lookup failed for a reason other than a missing entity."""


class StateNotFound(StateLookupError):
    """Entity is not in the guild state (not synced yet, or deleted)."""


class MentionResolutionError(BridgeError):
    """A channel or role mention could not be resolved; the translation is aborted."""
