"""Thumbnail generator service.

Provides a small OOP wrapper around Pillow to create thumbnails
for the record history list. The resulting thumbnail will fit within
160x160 pixels and is returned as PNG bytes.

Public class: `ThumbnailGenerator`

Example:
    tg = ThumbnailGenerator(max_size=(160, 160))
    thumb_png = tg.create_thumbnail(record.image_data)
"""
from __future__ import annotations

import io
from typing import Tuple

from PIL import Image

from services.image_codec import decode_image


class ThumbnailGenerator:
    """Generate thumbnails from stored image bytes.

    Args:
        max_size: Maximum width and height for the thumbnail. Defaults to (160, 160).
        background: Optional background color used when converting images with alpha to RGB.
            If None, images with alpha are flattened against white.
    """

    def __init__(self, max_size: Tuple[int, int] = (160, 160), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def create_thumbnail(self, image_bytes: bytes) -> bytes:
        """Create a PNG thumbnail from encoded image bytes.

        Raises:
            ImageConversionFailedError: If the bytes cannot be opened as an image.
        """
        src = decode_image(image_bytes).convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        # Flatten alpha against the background color
        background = Image.new("RGB", src.size, self.background)
        background.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        background.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()
