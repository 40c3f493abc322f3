"""Validation helpers for uploaded images."""

from fastapi import HTTPException, UploadFile

from services.errors import ImageConversionFailedError

ALLOWED_IMAGE_EXTENSIONS = (
    ".jpg",
    ".jpeg",
    ".png",
    ".heic",
    ".heif",
    ".webp",
    ".bmp",
    ".gif",
    ".tif",
    ".tiff",
)


def validate_image_file(image_file: UploadFile) -> None:
    """Validate that the upload looks like an image.

    The content type is checked when the client sends one; otherwise the
    filename extension must be a known image type.
    """
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if content_type.startswith("image/"):
            return
        if content_type != "application/octet-stream":
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")
    filename = (image_file.filename or "").lower()
    if not filename.endswith(ALLOWED_IMAGE_EXTENSIONS):
        raise HTTPException(status_code=415, detail="Unsupported or missing image content type.")


async def read_image_bytes(image_file: UploadFile) -> bytes:
    """Read validated image bytes.

    Raises:
        HTTPException: 415 if the upload is not an image type.
        ImageConversionFailedError: If the upload is empty.
    """
    validate_image_file(image_file)
    image_bytes = await image_file.read()
    if not image_bytes:
        raise ImageConversionFailedError()
    return image_bytes
