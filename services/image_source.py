"""Image acquisition from files on disk.

A missing file is treated like a cancelled picker: the caller gets None and
no error is shown.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import aiofiles
from PIL import Image

from services.image_codec import decode_image

LOGGER = logging.getLogger(__name__)


async def read_image_bytes(path: Path | str) -> Optional[bytes]:
    """Read raw bytes from `path`, or return None if there is no such file."""
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        LOGGER.info("No image at %s; treating acquisition as cancelled", file_path)
        return None
    async with aiofiles.open(file_path, "rb") as f:
        return await f.read()


async def load_image_file(path: Path | str) -> Optional[Image.Image]:
    """Read and decode the image at `path`.

    Returns:
        The decoded image, or None when the file does not exist.

    Raises:
        ImageConversionFailedError: If the file exists but is not a readable image.
    """
    data = await read_image_bytes(path)
    if data is None:
        return None
    return decode_image(data)
