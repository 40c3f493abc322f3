"""Decode captured images and encode them to JPEG with Pillow."""

from __future__ import annotations

import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from services.errors import ImageConversionFailedError

DEFAULT_JPEG_QUALITY = 80


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes into a fully loaded Pillow image.

    Raises:
        ImageConversionFailedError: If the bytes are empty or not a supported image.
    """
    if not data:
        raise ImageConversionFailedError()
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageConversionFailedError() from exc
    return image


class JpegEncoder:
    """Encode Pillow images to JPEG bytes.

    Args:
        quality: JPEG quality factor. Defaults to 80.
        background: Color used to flatten images with transparency.
    """

    def __init__(self, quality: int = DEFAULT_JPEG_QUALITY, background: Tuple[int, int, int] = (255, 255, 255)):
        self.quality = quality
        self.background = background

    def encode(self, image: Image.Image) -> bytes:
        """Return JPEG bytes for `image`.

        Raises:
            ImageConversionFailedError: If Pillow cannot convert or save the image.
        """
        try:
            rgb = self._to_rgb(image)
            out_io = io.BytesIO()
            rgb.save(out_io, format="JPEG", quality=self.quality)
        except (OSError, ValueError) as exc:
            raise ImageConversionFailedError() from exc

        data = out_io.getvalue()
        if not data:
            raise ImageConversionFailedError()
        return data

    def _to_rgb(self, image: Image.Image) -> Image.Image:
        if image.mode == "RGB":
            return image
        if image.mode in ("RGBA", "LA", "P"):
            src = image.convert("RGBA")
            background = Image.new("RGB", src.size, self.background)
            background.paste(src, mask=src.split()[3])
            return background
        return image.convert("RGB")
