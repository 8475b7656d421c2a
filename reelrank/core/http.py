"""Outbound HTTP client construction.

There is no process-wide client or proxy agent. The app lifespan (or a script)
builds one client here and hands it to every component that talks upstream;
tests pass a client backed by ``httpx.MockTransport`` instead.
"""

from __future__ import annotations

import httpx

from reelrank.core.config import Settings


def client_options(settings: Settings) -> dict:
    """Keyword arguments shared by every outbound client."""
    options: dict = {
        "timeout": httpx.Timeout(settings.HTTP_TIMEOUT),
        "headers": {
            "User-Agent": settings.HTTP_USER_AGENT,
            "Accept-Language": "en-US,en;q=0.9",
        },
        "follow_redirects": True,
    }
    if settings.HTTP_PROXY_URL:
        options["proxy"] = settings.HTTP_PROXY_URL
    return options


def build_http_client(settings: Settings, **overrides) -> httpx.AsyncClient:
    """Return a configured ``httpx.AsyncClient``; the caller owns closing it."""
    options = client_options(settings)
    options.update(overrides)
    return httpx.AsyncClient(**options)


def mask_token(value: str) -> str:
    """Short, log-safe preview of a credential."""
    if not value:
        return ""
    if len(value) <= 6:
        return "***"
    return f"{value[:4]}***"
