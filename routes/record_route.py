"""FastAPI routes for the lore record history."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import BaseModel

from controllers.record_controller import (
	delete_record,
	get_record,
	get_record_image,
	get_record_thumbnail,
	list_records,
)

router = APIRouter(prefix="/records", tags=["records"])


class RecordSummary(BaseModel):
	id: str
	object_name: Optional[str] = None
	display_name: str
	lore_text: str
	timestamp: Optional[str] = None
	has_image: bool


@router.get("", response_model=List[RecordSummary])
async def list_records_route(request: Request, limit: Optional[int] = Query(None, ge=1)):
	"""Return stored records, newest first."""
	try:
		return await list_records(request, limit)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{record_id}", response_model=RecordSummary)
async def get_record_route(request: Request, record_id: str):
	try:
		return await get_record(request, record_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{record_id}/image")
async def get_record_image_route(request: Request, record_id: str):
	"""Return the JPEG bytes stored with a record."""
	try:
		return await get_record_image(request, record_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{record_id}/thumbnail")
async def get_record_thumbnail_route(request: Request, record_id: str):
	"""Return a PNG thumbnail for the record list."""
	try:
		return await get_record_thumbnail(request, record_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{record_id}", status_code=204)
async def delete_record_route(request: Request, record_id: str):
	"""Delete a record. Deleting an unknown id succeeds without effect."""
	try:
		await delete_record(request, record_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
	return Response(status_code=204)
