"""Generate lore for an image file on disk and optionally save it.

Run: `python capture_file.py path/to/photo.jpg [--save]` with `DATABASE_DIR`
and `LORE_SERVICE_URL` set (a `.env` file works too).
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import httpx

from dal.lore_record_dal import LoreRecordDAL
from services.capture_coordinator import CaptureCoordinator
from services.errors import LoreAppError
from services.image_codec import JpegEncoder
from services.image_source import load_image_file
from services.lore.client import LoreClient
from utils.database_init import AsyncDatabaseInitializer
from utils.settings import Settings, load_settings


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate lore for a photo.")
    parser.add_argument("image", help="Path to the image file")
    parser.add_argument("--save", action="store_true", help="Persist the result as a lore record")
    return parser.parse_args(argv)


async def run_capture(
    settings: Settings,
    image_path: str,
    save: bool,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Run one capture flow and print the outcome. Returns a process exit code."""
    dal = LoreRecordDAL(AsyncDatabaseInitializer(settings.database_dir))
    async with httpx.AsyncClient(timeout=settings.request_timeout, transport=transport) as http_client:
        coordinator = CaptureCoordinator(
            LoreClient(
                settings.lore_service_url,
                http_client,
                allow_offline_fallback=settings.allow_offline_fallback,
            ),
            dal,
            JpegEncoder(quality=settings.jpeg_quality),
        )
        token = coordinator.begin()
        try:
            image = await load_image_file(image_path)
            result = await coordinator.on_image_captured(token, image)
            if result is None:
                print(f"No image at {image_path}; nothing to do.")
                return 0

            print(result.object_name or "Unknown Object")
            print()
            print(result.lore_text)

            if save:
                record = await coordinator.confirm(token)
                print()
                print(f"Saved lore record {record.id}")
            else:
                coordinator.abandon(token)
        except LoreAppError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return asyncio.run(run_capture(settings, args.image, args.save))


if __name__ == "__main__":
    sys.exit(main())
