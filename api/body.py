"""
api/body.py -- Bounded JSON request body reader.

Route handlers call read_json_body() instead of declaring a Pydantic body so
that three cases are handled before any validation runs:
  - bodies over Settings.max_body_bytes raise PayloadTooLarge (413, no body),
  - an empty body reads as {},
  - malformed JSON raises HTTP 400 "Invalid JSON payload".

The declared Content-Length is checked first; the stream is still counted
because chunked uploads carry no length.
"""

import json
from typing import Any

from fastapi import HTTPException, Request

from core.config import get_settings


class PayloadTooLarge(Exception):
    """Request body exceeded the configured limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Request body exceeds {limit} bytes")
        self.limit = limit


async def read_body(request: Request, limit: int | None = None) -> bytes:
    """Read the full request body, refusing to buffer more than limit bytes."""
    limit = limit if limit is not None else get_settings().max_body_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge(limit)
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLarge(limit)
        chunks.append(chunk)
    return b"".join(chunks)


async def read_json_body(request: Request) -> Any:
    """Return the parsed JSON body ({} when empty)."""
    raw = await read_body(request)
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from exc
