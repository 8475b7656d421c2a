"""Instagram structured-query client.

This client raises typed ResolutionError subclasses instead of returning
empty results: the resolver needs to know *why* an item failed, and the
fan-out coordinator is the single place where failures become per-item results.

Throttling (429, and 403 which Instagram also uses for rate limiting) is
retried with exponential backoff. Everything else fails immediately.
"""

import asyncio
import json
import time
from collections.abc import Awaitable, Callable

import httpx
import structlog

from reelrank.core.config import Settings
from reelrank.core.errors import UnsupportedContentType, UpstreamRequestFailed
from reelrank.core.metrics import (
    instagram_request_duration_seconds,
    instagram_requests_total,
    instagram_throttled_total,
)
from reelrank.core.retry import BackoffPolicy, parse_retry_after
from reelrank.models.schemas import AntiBotToken

logger = structlog.get_logger(__name__)

THROTTLE_STATUSES: frozenset[int] = frozenset({429, 403})
MEDIA_NODE = "xdt_shortcode_media"

Sleep = Callable[[float], Awaitable[None]]


def build_query_body(shortcode: str, doc_id: str) -> dict[str, str]:
    """Form fields for the shortcode media query."""
    variables = {
        "shortcode": shortcode,
        "fetch_tagged_user_count": None,
        "hoisted_comment_id": None,
        "hoisted_reply_id": None,
    }
    return {
        "variables": json.dumps(variables, separators=(",", ":")),
        "doc_id": doc_id,
    }


def extract_media_node(payload: object) -> dict:
    """Return ``data.xdt_shortcode_media`` or raise UnsupportedContentType."""
    data = payload.get("data") if isinstance(payload, dict) else None
    media = data.get(MEDIA_NODE) if isinstance(data, dict) else None
    if not isinstance(media, dict) or not media:
        raise UnsupportedContentType("Only posts/reels supported, check if your link is valid.")
    return media


class InstagramClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        *,
        backoff: BackoffPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._settings = settings
        self._backoff = backoff or settings.backoff_policy()
        self._sleep = sleep

    async def _post(self, body: dict[str, str], token: str) -> httpx.Response:
        headers = {
            "X-CSRFToken": token,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        start = time.perf_counter()
        try:
            return await self._client.post(
                self._settings.INSTAGRAM_GRAPHQL_URL, data=body, headers=headers
            )
        finally:
            instagram_request_duration_seconds.labels(endpoint="graphql").observe(
                time.perf_counter() - start
            )

    async def fetch_media(
        self,
        shortcode: str,
        token: AntiBotToken | str,
        retries: int | None = None,
        initial_delay_ms: int | None = None,
    ) -> dict:
        """
        Fetch the raw media node for ``shortcode``.

        Idle -> Requesting -> Success | Throttled -> Backoff -> Requesting | Failed.
        The backoff loop runs at most ``retries`` times; each wait is either the
        server's Retry-After or the current delay, and the delay is multiplied
        after every throttled attempt.
        """
        token_value = token.value if isinstance(token, AntiBotToken) else token
        remaining = self._settings.INSTAGRAM_FETCH_RETRIES if retries is None else retries
        delay = (
            self._backoff.initial_delay if initial_delay_ms is None else initial_delay_ms / 1000.0
        )
        body = build_query_body(shortcode, self._settings.INSTAGRAM_DOC_ID)
        attempt = 0

        while True:
            attempt += 1
            try:
                response = await self._post(body, token_value)
            except httpx.HTTPError as exc:
                instagram_requests_total.labels(endpoint="graphql", status="error").inc()
                logger.warning(
                    "instagram.fetch.transport_error",
                    shortcode=shortcode,
                    attempt=attempt,
                    error=str(exc),
                )
                raise UpstreamRequestFailed(
                    f"Failed instagram request: {exc}", cause=exc
                ) from exc

            status_code = response.status_code
            if status_code in THROTTLE_STATUSES:
                instagram_requests_total.labels(endpoint="graphql", status="throttled").inc()
                if remaining <= 0:
                    logger.error(
                        "instagram.fetch.retries_exhausted",
                        shortcode=shortcode,
                        attempts=attempt,
                        status_code=status_code,
                    )
                    raise UpstreamRequestFailed(
                        f"Failed instagram request: throttled with HTTP {status_code} "
                        f"after {attempt} attempts",
                        status_code=status_code,
                    )
                retry_after = parse_retry_after(response.headers.get("retry-after"))
                if retry_after is not None:
                    wait = self._backoff.cap(retry_after)
                else:
                    wait = self._backoff.apply_jitter(delay)
                instagram_throttled_total.labels(status_code=str(status_code)).inc()
                logger.warning(
                    "instagram.fetch.throttled",
                    shortcode=shortcode,
                    attempt=attempt,
                    status_code=status_code,
                    wait_seconds=wait,
                    retry_after=retry_after is not None,
                    retries_left=remaining - 1,
                )
                await self._sleep(wait)
                remaining -= 1
                delay = self._backoff.next_delay(delay)
                continue

            if response.is_error:
                instagram_requests_total.labels(endpoint="graphql", status="error").inc()
                logger.warning(
                    "instagram.fetch.http_error",
                    shortcode=shortcode,
                    status_code=status_code,
                    response_preview=response.text[:200] if response.text else "",
                )
                raise UpstreamRequestFailed(
                    f"Failed instagram request: HTTP {status_code}", status_code=status_code
                )

            try:
                payload = response.json()
            except ValueError as exc:
                instagram_requests_total.labels(endpoint="graphql", status="error").inc()
                logger.warning("instagram.fetch.invalid_json", shortcode=shortcode)
                raise UpstreamRequestFailed(
                    "Failed instagram request: response is not JSON",
                    cause=exc,
                    status_code=status_code,
                ) from exc

            instagram_requests_total.labels(endpoint="graphql", status="success").inc()
            media = extract_media_node(payload)
            logger.info("instagram.fetch.success", shortcode=shortcode, attempts=attempt)
            return media
