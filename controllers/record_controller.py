"""Controllers for browsing and deleting stored lore records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.responses import Response

from controllers.error_mapping import to_http_exception
from dal.lore_record_dal import LoreRecordDAL
from models.lore_record import LoreRecord
from services.errors import ImageConversionFailedError, StoreCommitError
from services.thumbnail_generator import ThumbnailGenerator


def record_summary(record: LoreRecord) -> Dict[str, Any]:
    """Serialize a record for JSON responses (image bytes are served separately)."""
    timestamp = (
        datetime.fromtimestamp(record.timestamp, tz=timezone.utc).isoformat()
        if record.timestamp is not None
        else None
    )
    return {
        "id": record.id,
        "object_name": record.object_name,
        "display_name": record.display_name,
        "lore_text": record.lore_text,
        "timestamp": timestamp,
        "has_image": bool(record.image_data),
    }


def _dal(request: Request) -> LoreRecordDAL:
    return request.app.state.record_dal


async def _require_record(request: Request, record_id: str) -> LoreRecord:
    record = await _dal(request).get_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Lore record not found")
    return record


async def list_records(request: Request, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Return record summaries, newest first."""
    records = await _dal(request).list_records(limit=limit)
    return [record_summary(r) for r in records]


async def get_record(request: Request, record_id: str) -> Dict[str, Any]:
    return record_summary(await _require_record(request, record_id))


async def get_record_image(request: Request, record_id: str) -> Response:
    """Return the stored JPEG for a record, or 404 when it has none."""
    record = await _require_record(request, record_id)
    if not record.image_data:
        raise HTTPException(status_code=404, detail="Image not available for this record")
    return Response(content=record.image_data, media_type="image/jpeg")


async def get_record_thumbnail(request: Request, record_id: str) -> Response:
    """Return a PNG thumbnail of the record's image."""
    record = await _require_record(request, record_id)
    if not record.image_data:
        raise HTTPException(status_code=404, detail="Thumbnail not available for this record")
    try:
        thumbnail = ThumbnailGenerator().create_thumbnail(record.image_data)
    except ImageConversionFailedError as exc:
        raise to_http_exception(exc) from exc
    return Response(content=thumbnail, media_type="image/png")


async def delete_record(request: Request, record_id: str) -> None:
    """Delete a record; unknown ids are accepted silently."""
    try:
        await _dal(request).delete_record(record_id)
    except StoreCommitError as exc:
        raise to_http_exception(exc) from exc
