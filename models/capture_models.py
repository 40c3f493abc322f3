"""Capture flow models held in memory by the capture coordinator."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CaptureResult:
	"""Generated lore awaiting user confirmation."""

	token: str
	lore_text: str
	object_name: str
	image_data: bytes


@dataclass
class ActiveCapture:
	"""State of the single active capture flow."""

	token: str
	generation: int
	started_at: float = field(default_factory=lambda: time.time())
	result: Optional[CaptureResult] = None
