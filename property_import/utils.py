"""Utility helpers shared across the client."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx


def request_key(url: str, user_id: str) -> str:
    """Logical identity of an import request, used for deduplication.

    Only the trimmed, lower-cased url and the user id matter; two requests that
    normalize to the same key are the same import.
    """
    return f"{user_id}:{(url or '').strip().lower()}"


def response_error_message(resp: httpx.Response) -> str:
    """Best human-readable error for a failed response.

    Order: JSON `error` or `message` field, then the raw body text, then
    `HTTP <status>`. The first non-empty value wins.
    """
    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        for field in ("error", "message"):
            val = payload.get(field)
            if isinstance(val, str) and val.strip():
                return val.strip()

    try:
        text = resp.text.strip()
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        text = ""
    if text:
        return text

    return f"HTTP {resp.status_code}"


@asynccontextmanager
async def http_client(client: Optional[httpx.AsyncClient], timeout_s: float) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a short-lived one owned by this block."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout_s, follow_redirects=True) as owned:
        yield owned
