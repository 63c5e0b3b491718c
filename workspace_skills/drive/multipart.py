"""``multipart/related`` bodies for Drive's single-request uploads."""

from __future__ import annotations

import json
from typing import Any

BOUNDARY = "-------314159265358979323846"


def build_multipart_body(
    metadata: dict[str, Any],
    media: bytes,
    media_mime_type: str,
    boundary: str = BOUNDARY,
) -> tuple[bytes, str]:
    """Return ``(body, content_type)`` holding the JSON metadata then the media bytes."""
    delimiter = f"\r\n--{boundary}\r\n".encode()
    close_delim = f"\r\n--{boundary}--".encode()

    body = b"".join([
        delimiter,
        b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
        json.dumps(metadata).encode("utf-8"),
        delimiter,
        f"Content-Type: {media_mime_type}\r\n\r\n".encode(),
        media,
        close_delim,
    ])
    return body, f"multipart/related; boundary={boundary}"
