"""Controllers for the capture flow: start, upload, confirm, abandon."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import HTTPException, Request, UploadFile
from fastapi.responses import Response

from controllers.error_mapping import to_http_exception
from controllers.record_controller import record_summary
from services.capture_coordinator import CaptureCoordinator
from services.errors import ImageConversionFailedError, LoreAppError
from services.image_codec import decode_image
from utils.media_validation import read_image_bytes

LOGGER = logging.getLogger(__name__)


def _coordinator(request: Request) -> CaptureCoordinator:
    return request.app.state.capture_coordinator


async def start_capture(request: Request) -> Dict[str, Any]:
    """Start a capture flow and return its token."""
    return {"token": _coordinator(request).begin()}


async def capture_image(request: Request, token: str, image: UploadFile) -> Dict[str, Any]:
    """Decode the uploaded image, generate lore for it, and return the pending result.

    Args:
        request: FastAPI Request object (used to access app.state).
        token: Capture token returned by `start_capture`.
        image: Uploaded photo from the camera or library.

    Returns:
        A dict containing: token, lore_text, object_name.

    Raises:
        HTTPException: With the error's message when the flow fails; the
            flow is ended and nothing is persisted.
    """
    coordinator = _coordinator(request)
    try:
        decoded = decode_image(await read_image_bytes(image))
    except HTTPException:
        LOGGER.warning("Capture %s upload rejected", token)
        coordinator.abandon(token)
        raise
    except ImageConversionFailedError as exc:
        LOGGER.warning("Capture %s upload is not a readable image", token)
        coordinator.abandon(token)
        raise to_http_exception(exc) from exc

    try:
        result = await coordinator.on_image_captured(token, decoded)
    except LoreAppError as exc:
        LOGGER.warning("Capture %s failed: %s", token, exc)
        raise to_http_exception(exc) from exc

    if result is None:
        raise HTTPException(status_code=409, detail="Capture was abandoned before lore arrived")

    return {
        "token": result.token,
        "lore_text": result.lore_text,
        "object_name": result.object_name,
    }


async def get_pending_image(request: Request, token: str) -> Response:
    """Return the JPEG of the capture awaiting confirmation."""
    result = _coordinator(request).pending(token)
    if result is None:
        raise HTTPException(status_code=404, detail="No pending capture for this token")
    return Response(content=result.image_data, media_type="image/jpeg")


async def confirm_capture(request: Request, token: str) -> Dict[str, Any]:
    """Persist the pending capture and return the stored record summary."""
    try:
        record = await _coordinator(request).confirm(token)
    except LoreAppError as exc:
        raise to_http_exception(exc) from exc
    return record_summary(record)


async def abandon_capture(request: Request, token: str) -> None:
    _coordinator(request).abandon(token)


async def capture_status(request: Request) -> Dict[str, Any]:
    """Report whether an upload is running and which flow is active."""
    coordinator = _coordinator(request)
    return {
        "in_progress": coordinator.lore_client.in_progress,
        "active_capture": coordinator.active_token,
    }
