"""Error taxonomy for lore generation, capture flows, and record storage.

Every error's message is the user-facing description shown when a flow is
aborted, so controllers can surface `str(exc)` directly.
"""

from __future__ import annotations


class LoreAppError(Exception):
    """Base exception for this project."""


class ImageConversionFailedError(LoreAppError):
    """Raised when an image cannot be decoded or encoded to JPEG."""

    def __init__(self, message: str = "Failed to convert image to data") -> None:
        super().__init__(message)


class InvalidConfigurationError(LoreAppError):
    """Raised when the lore service base URL is unusable."""

    def __init__(self, base_url: str) -> None:
        super().__init__("Invalid server URL")
        self.base_url = base_url


class ServerError(LoreAppError):
    """Raised when the lore service answers with a status other than 200."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server error: {status_code}")
        self.status_code = status_code


class ResponseParseError(LoreAppError):
    """Raised when a 200 response does not carry a usable `lore` field."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"The lore server returned an unreadable response: {reason}")
        self.reason = reason


class TransportError(LoreAppError):
    """Raised when the lore service cannot be reached at all."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Could not reach the lore server: {detail}")
        self.detail = detail


class StoreCommitError(LoreAppError):
    """Raised when a record insert or delete cannot be committed."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"Failed to {operation} lore object: {detail}")
        self.operation = operation
        self.detail = detail


class CaptureAbandonedError(LoreAppError):
    """Raised when a capture token is stale, unknown, or has nothing pending."""

    def __init__(self, token: str) -> None:
        super().__init__("This capture is no longer active")
        self.token = token


class CaptureInProgressError(LoreAppError):
    """Raised when an upload arrives while another one is still running."""

    def __init__(self) -> None:
        super().__init__("Lore generation is already in progress")
