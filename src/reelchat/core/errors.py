"""Error taxonomy shared across the core."""

from __future__ import annotations


class ReelchatError(Exception):
    """Base class for every error raised by the core."""


class NotFound(ReelchatError):
    """Raised when a requested entity (e.g. a chat session) does not exist."""


class StorageError(ReelchatError):
    """Raised when the session store rejects a write or is unreachable."""


class SessionConflict(StorageError):
    """Raised when a session changed since it was loaded."""

    def __init__(self, session_id: str, expected_version: int) -> None:
        super().__init__(
            f"Chat session {session_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.session_id = session_id
        self.expected_version = expected_version


class UpstreamError(ReelchatError):
    """Raised when an external provider (model, TMDb, ...) call fails."""

    def __init__(self, message: str, *, provider: str = "") -> None:
        super().__init__(message)
        self.provider = provider


class MalformedReply(ReelchatError):
    """Raised when model output cannot be parsed into the reply contract."""


class ValidationFailed(ReelchatError):
    """Raised when caller input is rejected before any work is done."""
