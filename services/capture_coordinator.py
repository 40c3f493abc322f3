"""Coordinate one capture flow: image → lore → confirmation → persisted record.

Only one flow is active at a time. Each flow is identified by a token; a new
`begin()` or an explicit `abandon()` makes the previous token stale, and any
lore that arrives for a stale token is dropped instead of being persisted.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional

from PIL import Image

from dal.lore_record_dal import LoreRecordDAL
from models.capture_models import ActiveCapture, CaptureResult
from models.lore_record import LoreRecord
from services.errors import CaptureAbandonedError, CaptureInProgressError
from services.image_codec import JpegEncoder
from services.lore.client import LoreClient
from services.name_extractor import extract_object_name

LOGGER = logging.getLogger(__name__)


class CaptureCoordinator:
    """Drive capture flows between the lore client and the record store."""

    def __init__(
        self,
        lore_client: LoreClient,
        record_dal: LoreRecordDAL,
        encoder: Optional[JpegEncoder] = None,
    ) -> None:
        if lore_client is None:
            raise ValueError("A LoreClient must be provided.")
        self.lore_client = lore_client
        self.record_dal = record_dal
        self.encoder = encoder or JpegEncoder()
        self._generation = 0
        self._active: Optional[ActiveCapture] = None
        self._busy = False

    @property
    def active_token(self) -> Optional[str]:
        return self._active.token if self._active else None

    def begin(self) -> str:
        """Start a new capture flow and return its token.

        Any previous flow is superseded; its in-flight result will be ignored.
        """
        if self._active is not None:
            LOGGER.info("Capture %s superseded by a new capture", self._active.token)
        self._generation += 1
        token = uuid.uuid4().hex
        self._active = ActiveCapture(token=token, generation=self._generation)
        LOGGER.info("Capture %s started (generation %d)", token, self._generation)
        return token

    def abandon(self, token: str) -> None:
        """End the flow for `token`. Unknown or stale tokens are ignored."""
        if self._is_current(token):
            LOGGER.info("Capture %s abandoned", token)
            self._active = None

    def pending(self, token: str) -> Optional[CaptureResult]:
        """Return the result awaiting confirmation for `token`, if any."""
        if not self._is_current(token):
            return None
        return self._active.result

    async def on_image_captured(self, token: str, image: Optional[Image.Image]) -> Optional[CaptureResult]:
        """Generate lore for a captured image.

        Args:
            token: Token returned by `begin()`.
            image: The acquired image, or None if acquisition was cancelled.

        Returns:
            The result to present for confirmation, or None if acquisition was
            cancelled or the flow was abandoned while the request was running.

        Raises:
            CaptureAbandonedError: If `token` is not the active flow.
            CaptureInProgressError: If an upload is already running.
            ImageConversionFailedError: If the image cannot be encoded.
            LoreAppError: Any lore client failure; the flow is ended first.

        Cancellation of the calling task also ends the flow.
        """
        if image is None:
            self.abandon(token)
            return None

        active = self._require_current(token)
        if self._busy or self.lore_client.in_progress:
            raise CaptureInProgressError()

        # Held from encoding through upload so only one capture reaches the network.
        self._busy = True
        generation = active.generation
        try:
            image_data = await asyncio.to_thread(self.encoder.encode, image)
            LOGGER.info("Capture %s encoded to JPEG (%d bytes)", token, len(image_data))
            if not self._is_current(token, generation):
                LOGGER.info("Capture %s was abandoned during encoding; skipping upload", token)
                return None
            lore = await self.lore_client.generate_lore(image_data)
        except BaseException:
            if self._is_current(token, generation):
                # Drop the in-memory image; no partial record is ever created.
                self._active = None
            raise
        finally:
            self._busy = False

        if not self._is_current(token, generation):
            LOGGER.info("Capture %s was abandoned before lore arrived; discarding result", token)
            return None

        result = CaptureResult(
            token=token,
            lore_text=lore,
            object_name=extract_object_name(lore),
            image_data=image_data,
        )
        active.result = result
        LOGGER.info("Capture %s ready for confirmation (name=%r)", token, result.object_name)
        return result

    async def confirm(self, token: str) -> LoreRecord:
        """Persist the pending result for `token` and end the flow.

        Raises:
            CaptureAbandonedError: If `token` is stale or has no pending result.
            StoreCommitError: If the record cannot be saved; the pending result
                is kept so the confirmation can be retried.
        """
        active = self._require_current(token)
        result = active.result
        if result is None:
            raise CaptureAbandonedError(token)

        record = await self.record_dal.insert_record(
            LoreRecord(
                id=None,
                lore_text=result.lore_text,
                image_data=result.image_data,
                object_name=result.object_name or None,
            )
        )
        if self._is_current(token, active.generation):
            self._active = None
        return record

    def _is_current(self, token: str, generation: Optional[int] = None) -> bool:
        active = self._active
        if active is None or active.token != token:
            return False
        return generation is None or active.generation == generation

    def _require_current(self, token: str) -> ActiveCapture:
        if not self._is_current(token):
            raise CaptureAbandonedError(token)
        return self._active
