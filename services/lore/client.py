"""Description: Client for the remote lore-generation service."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from services.errors import (
    ImageConversionFailedError,
    InvalidConfigurationError,
    ResponseParseError,
    TransportError,
)
from services.lore.multipart import build_upload
from services.lore.response_parser import parse_lore_response

LOGGER = logging.getLogger(__name__)

LORE_ENDPOINT_PATH = "/generate-lore"

OFFLINE_FALLBACK_LORE = (
    "In the depths of the ancient Elderwood Forest, this mystical artifact was forged by "
    "the legendary Moonsmith during the Great Convergence. Legend speaks of its power to "
    "reveal hidden truths and illuminate the path of destiny for those brave enough to wield it."
)


class LoreClient:
    """Upload an image to the lore service and return the generated text."""

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient,
        *,
        allow_offline_fallback: bool = False,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Lore service base URL, e.g. `http://192.168.1.20:3001`.
            http_client: Shared async HTTP client; its lifetime is owned by the caller.
            allow_offline_fallback: Return placeholder lore on transport failures.
                Must stay False in production.
        """
        if http_client is None:
            raise ValueError("An httpx.AsyncClient must be provided.")
        self.base_url = base_url
        self.http_client = http_client
        self.allow_offline_fallback = allow_offline_fallback
        self._active_calls = 0

    @property
    def in_progress(self) -> bool:
        """True while a `generate_lore` call is running on this client."""
        return self._active_calls > 0

    @asynccontextmanager
    async def _tracking(self) -> AsyncIterator[None]:
        self._active_calls += 1
        try:
            yield
        finally:
            self._active_calls -= 1

    def endpoint_url(self) -> httpx.URL:
        """Return the absolute upload URL or raise `InvalidConfigurationError`."""
        try:
            url = httpx.URL(self.base_url.rstrip("/") + LORE_ENDPOINT_PATH)
        except (httpx.InvalidURL, TypeError, AttributeError) as exc:
            raise InvalidConfigurationError(str(self.base_url)) from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidConfigurationError(self.base_url)
        return url

    async def generate_lore(self, image_bytes: bytes) -> str:
        """Generate lore for JPEG `image_bytes`.

        Returns:
            The non-empty lore text.

        Raises:
            ImageConversionFailedError: If `image_bytes` is empty.
            InvalidConfigurationError: If the base URL is unusable.
            ServerError: If the service answers with a non-200 status.
            ResponseParseError: If a 200 body has no usable `lore` field.
            TransportError: If the service cannot be reached and the offline
                fallback is disabled.
        """
        if not image_bytes:
            raise ImageConversionFailedError()

        async with self._tracking():
            url = self.endpoint_url()
            content_type, body = build_upload(image_bytes)
            LOGGER.info("Uploading %d bytes to %s", len(image_bytes), url)

            start_time = time.time()
            try:
                response = await self.http_client.post(
                    url,
                    content=body,
                    headers={"Content-Type": content_type},
                )
            except httpx.TransportError as exc:
                if self.allow_offline_fallback:
                    LOGGER.warning("Lore service at %s unreachable (%r); returning offline fallback lore", url, exc)
                    return OFFLINE_FALLBACK_LORE
                LOGGER.error("Lore request to %s failed: %r", url, exc)
                raise TransportError(str(exc) or type(exc).__name__) from exc
            except httpx.DecodingError as exc:
                # The service answered, but its body could not be decoded.
                LOGGER.error("Lore response from %s could not be decoded: %r", url, exc)
                raise ResponseParseError("undecodable response body") from exc
            except httpx.HTTPError as exc:
                LOGGER.error("Lore request to %s failed: %r", url, exc)
                raise TransportError(str(exc) or type(exc).__name__) from exc

            LOGGER.info(
                "Lore service answered %s in %.3fs (%d bytes)",
                response.status_code,
                time.time() - start_time,
                len(response.content),
            )
            try:
                lore = parse_lore_response(response)
            except Exception as exc:
                LOGGER.error("Lore response rejected: %s", exc)
                raise

            LOGGER.debug("Generated lore: %.50s...", lore)
            return lore
