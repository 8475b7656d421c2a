"""Anti-bot (CSRF) token lifecycle for the Instagram structured-query endpoint.

A token is acquired once per batch, or supplied by the caller, and then read
concurrently by every resolution in that batch. It is never persisted and has
no expiry tracking: a caller holding it across batches accepts that it may go
stale, in exchange for not paying a landing-page round trip per item.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime

import httpx
import structlog

from reelrank.core.config import Settings
from reelrank.core.errors import TokenAcquisitionFailed
from reelrank.core.http import mask_token
from reelrank.core.metrics import instagram_request_duration_seconds, instagram_requests_total
from reelrank.models.schemas import AntiBotToken

logger = structlog.get_logger(__name__)


def token_from_set_cookie(headers: httpx.Headers, cookie_name: str = "csrftoken") -> str | None:
    """Return the token value from the first ``Set-Cookie`` carrying ``cookie_name``."""
    prefix = f"{cookie_name}="
    for raw in headers.get_list("set-cookie"):
        pair = raw.split(";", 1)[0].strip()
        if pair.startswith(prefix):
            value = pair[len(prefix) :].strip()
            return value or None
    return None


class TokenManager:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def acquire(self, provided: str | AntiBotToken | None = None) -> AntiBotToken:
        """
        Return ``provided`` unchanged when given, otherwise fetch a fresh token.

        Raises TokenAcquisitionFailed when the landing page cannot be reached
        or sets no usable cookie.
        """
        if isinstance(provided, AntiBotToken):
            return provided
        if provided:
            return AntiBotToken(
                value=provided,
                acquired_at=datetime.now(UTC),
                source="caller-supplied",
            )
        return await self.fetch()

    async def fetch(self) -> AntiBotToken:
        url = self._settings.INSTAGRAM_BASE_URL.rstrip("/") + "/"
        start = time.perf_counter()
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            instagram_requests_total.labels(endpoint="token", status="error").inc()
            logger.warning("instagram.token.request_failed", error=str(exc))
            raise TokenAcquisitionFailed(f"Failed to obtain CSRF token: {exc}") from exc
        finally:
            instagram_request_duration_seconds.labels(endpoint="token").observe(
                time.perf_counter() - start
            )

        value = token_from_set_cookie(response.headers, self._settings.INSTAGRAM_CSRF_COOKIE)
        if not value:
            instagram_requests_total.labels(endpoint="token", status="error").inc()
            logger.warning(
                "instagram.token.cookie_missing",
                status_code=response.status_code,
                cookie=self._settings.INSTAGRAM_CSRF_COOKIE,
            )
            raise TokenAcquisitionFailed("CSRF token not found in response headers.")

        instagram_requests_total.labels(endpoint="token", status="success").inc()
        logger.info("instagram.token.fetched", token_preview=mask_token(value))
        return AntiBotToken(value=value, acquired_at=datetime.now(UTC), source="fetched")
