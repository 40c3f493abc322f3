"""Translate lore app errors into HTTP errors carrying the user-facing message."""

from fastapi import HTTPException

from services.errors import (
    CaptureAbandonedError,
    CaptureInProgressError,
    ImageConversionFailedError,
    InvalidConfigurationError,
    LoreAppError,
    ResponseParseError,
    ServerError,
    StoreCommitError,
    TransportError,
)

_STATUS_BY_ERROR = (
    (ImageConversionFailedError, 400),
    (CaptureAbandonedError, 409),
    (CaptureInProgressError, 409),
    (ServerError, 502),
    (ResponseParseError, 502),
    (TransportError, 503),
    (InvalidConfigurationError, 500),
    (StoreCommitError, 500),
)


def to_http_exception(exc: LoreAppError) -> HTTPException:
    """Return an HTTPException whose detail is the error's description."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
