"""Helpers to parse lore service responses."""

import json
from typing import Any

import httpx

from services.errors import ResponseParseError, ServerError

SUCCESS_STATUS = 200


def parse_lore_response(response: httpx.Response) -> str:
    """Return the `lore` text of a successful response.

    Any status other than 200 is a `ServerError`, whatever the body holds.
    """
    if response.status_code != SUCCESS_STATUS:
        raise ServerError(response.status_code)

    try:
        payload: Any = json.loads(response.content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ResponseParseError("body is not valid JSON") from exc

    if not isinstance(payload, dict):
        raise ResponseParseError("expected a JSON object")

    lore = payload.get("lore")
    if not isinstance(lore, str):
        raise ResponseParseError("missing string field 'lore'")
    if not lore.strip():
        raise ResponseParseError("field 'lore' is empty")
    return lore
