# wordref/web/security.py

"""
Guards for the routes that edit the document or the library.

Reads stay open. Edits need the configured API key (when one is set) and
are counted per client in a fixed window, so a runaway add-in loop cannot
hammer the refresh pipeline.
"""

from __future__ import annotations

import secrets
import time
from typing import Dict, Optional, Tuple

from fastapi import Header, HTTPException, Request, status

from wordref.config.settings import settings


def api_key_auth(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")) -> None:
    """
    Check X-API-Key against WORDREF_API_KEY. With no key configured, every
    request passes.
    """
    if settings.API_KEY is None:
        return
    expected = settings.API_KEY.get_secret_value()
    if x_api_key is None or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key.",
        )


class EditRateLimiter:
    """
    Fixed-window counter of edits per client host. Single process only.

    Limits are read from settings on every call, so changing
    WORDREF_EDIT_RATE_LIMIT needs no restart of the limiter.
    """

    def __init__(self) -> None:
        # client -> (window_start, edits)
        self._windows: Dict[str, Tuple[float, int]] = {}

    def __call__(self, request: Request) -> None:
        limit = settings.EDIT_RATE_LIMIT
        if limit <= 0:
            return
        window = settings.EDIT_RATE_WINDOW_SECONDS
        client = request.client.host if request.client else "unknown"

        now = time.monotonic()
        started, edits = self._windows.get(client, (now, 0))
        if now - started >= window:
            started, edits = now, 0

        if edits >= limit:
            retry_after = max(1, int(window - (now - started)))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"More than {limit} edits in {window:g}s. Try again later.",
                headers={"Retry-After": str(retry_after)},
            )
        self._windows[client] = (started, edits + 1)

    def reset(self) -> None:
        self._windows.clear()


rate_limiter = EditRateLimiter()


def reset_rate_limits() -> None:
    rate_limiter.reset()
