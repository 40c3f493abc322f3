from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

UNKNOWN_OBJECT_NAME = "Unknown Object"


@dataclass(frozen=True)
class LoreRecord:
    """In-memory representation of a row in the LORE_RECORD table.

    Records are write-once: the store never updates a row after insert.

    Attributes:
        id: UUID hex primary key (None for records not yet inserted).
        lore_text: Generated narrative text.
        image_data: JPEG bytes of the captured image (None for preview data).
        object_name: Short label derived from the lore text.
        timestamp: Unix timestamp (seconds) of creation; the list sort key.
    """

    id: Optional[str]
    lore_text: str
    image_data: Optional[bytes] = None
    object_name: Optional[str] = None
    timestamp: Optional[float] = None

    @property
    def display_name(self) -> str:
        """Object name for presentation, with a placeholder when absent."""
        return self.object_name or UNKNOWN_OBJECT_NAME
