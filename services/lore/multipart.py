"""Utilities to build the multipart upload payload for the lore service."""

import uuid
from typing import Optional, Tuple

FIELD_NAME = "file"
FILENAME = "image.jpg"
CONTENT_TYPE = "image/jpeg"

_LINE_BREAK = b"\r\n"


def new_boundary() -> str:
    """Return a fresh boundary token for one request."""
    return uuid.uuid4().hex


def content_type_header(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def build_multipart_body(image_bytes: bytes, boundary: str) -> bytes:
    """Build a multipart/form-data body holding exactly one JPEG part.

    Layout: `--boundary CRLF headers CRLF CRLF bytes CRLF --boundary-- CRLF`.
    """
    delimiter = f"--{boundary}".encode("ascii")
    headers = (
        f'Content-Disposition: form-data; name="{FIELD_NAME}"; filename="{FILENAME}"\r\n'
        f"Content-Type: {CONTENT_TYPE}\r\n"
    ).encode("ascii")
    return b"".join(
        (
            delimiter,
            _LINE_BREAK,
            headers,
            _LINE_BREAK,
            image_bytes,
            _LINE_BREAK,
            delimiter,
            b"--",
            _LINE_BREAK,
        )
    )


def build_upload(image_bytes: bytes, boundary: Optional[str] = None) -> Tuple[str, bytes]:
    """Return `(content_type_header, body)` for an upload of `image_bytes`."""
    boundary = boundary or new_boundary()
    return content_type_header(boundary), build_multipart_body(image_bytes, boundary)
