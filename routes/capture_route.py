"""FastAPI routes for capture flows."""

from fastapi import APIRouter, File, HTTPException, Request, Response, UploadFile

from controllers.capture_controller import (
	abandon_capture,
	capture_image,
	capture_status,
	confirm_capture,
	get_pending_image,
	start_capture,
)

router = APIRouter(tags=["captures"])


@router.get("/status")
async def capture_status_route(request: Request):
	"""Report the in-progress flag and the active capture token."""
	return await capture_status(request)


@router.post("/captures")
async def start_capture_route(request: Request):
	try:
		return await start_capture(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/captures/{token}/image")
async def capture_image_route(request: Request, token: str, image: UploadFile = File(...)):
	"""Upload a photo for the capture and return the generated lore for confirmation."""
	try:
		return await capture_image(request, token, image)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/captures/{token}/image")
async def pending_image_route(request: Request, token: str):
	try:
		return await get_pending_image(request, token)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/captures/{token}/confirm")
async def confirm_capture_route(request: Request, token: str):
	"""Persist the generated lore shown to the user."""
	try:
		return await confirm_capture(request, token)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/captures/{token}", status_code=204)
async def abandon_capture_route(request: Request, token: str):
	"""Dismiss the capture flow; an in-flight result will not be saved."""
	await abandon_capture(request, token)
	return Response(status_code=204)
