"""Sample records for previewing the history list without a lore server."""

from __future__ import annotations

import logging
import time
from typing import List, Optional

from dal.lore_record_dal import LoreRecordDAL
from models.lore_record import LoreRecord

LOGGER = logging.getLogger(__name__)

PREVIEW_ENTRIES = (
    (
        "Sacred Chalice",
        "This ancient chalice was once used by the High Priestess of Moonwater to perform "
        "sacred rituals under the full moon.",
    ),
    (
        "Merchant's Timepiece",
        "A mystical timepiece that belonged to a traveling merchant from the realm of Shadowlands.",
    ),
    (
        "Crystal of Truth",
        "Legend speaks of this enchanted crystal that holds the power to reveal hidden truths.",
    ),
)


def build_preview_records(now: Optional[float] = None) -> List[LoreRecord]:
    """Return the preview records, newest first, spaced one hour apart.

    Preview records carry no image data.
    """
    now = time.time() if now is None else now
    return [
        LoreRecord(id=None, lore_text=text, object_name=name, timestamp=now - index * 3600)
        for index, (name, text) in enumerate(PREVIEW_ENTRIES)
    ]


async def seed_preview_records(dal: LoreRecordDAL) -> int:
    """Insert the preview records if the store is empty. Returns the number inserted."""
    if await dal.count_records() > 0:
        return 0
    records = build_preview_records()
    for record in records:
        await dal.insert_record(record)
    LOGGER.info("Seeded %d preview lore records", len(records))
    return len(records)
