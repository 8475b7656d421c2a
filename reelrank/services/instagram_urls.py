"""Normalize raw Instagram post/reel URLs into a MediaReference."""

from __future__ import annotations

import time
from urllib.parse import urlsplit

import httpx
import structlog

from reelrank.core.errors import ShortcodeNotFound, UpstreamRequestFailed
from reelrank.core.metrics import instagram_request_duration_seconds, instagram_requests_total
from reelrank.models.schemas import MediaReference

logger = structlog.get_logger(__name__)

POST_TAGS: tuple[str, ...] = ("p", "reel", "tv", "reels")
SHARE_SEGMENT = "share"
CANONICAL_URL_TEMPLATE = "https://www.instagram.com/{tag}/{shortcode}/"


def _path_segments(url: str) -> list[str]:
    raw = str(url or "").strip()
    try:
        path = urlsplit(raw).path
    except ValueError:
        # Unparseable netloc (e.g. an unclosed IPv6 bracket): scan the raw string.
        path = raw
    return path.split("/")


def is_share_url(url: str) -> bool:
    return SHARE_SEGMENT in _path_segments(url)


def locate_shortcode(url: str) -> tuple[str, str]:
    """Return ``(tag, shortcode)`` for the first known tag in the URL path."""
    segments = _path_segments(url)
    for index, segment in enumerate(segments):
        if segment in POST_TAGS:
            shortcode = segments[index + 1] if index + 1 < len(segments) else ""
            if not shortcode:
                break
            return segment, shortcode
    raise ShortcodeNotFound(url)


def extract_shortcode(url: str) -> str:
    """Shortcode of a post/reel URL. Raises ShortcodeNotFound."""
    return locate_shortcode(url)[1]


def build_reference(raw_url: str, effective_url: str | None = None) -> MediaReference:
    tag, shortcode = locate_shortcode(effective_url or raw_url)
    return MediaReference(
        raw_url=raw_url,
        canonical_url=CANONICAL_URL_TEMPLATE.format(tag=tag, shortcode=shortcode),
        shortcode=shortcode,
        platform_tag=tag,
    )


async def resolve_share_redirect(url: str, client: httpx.AsyncClient) -> str:
    """Follow a share link once and return the resolved request path."""
    start = time.perf_counter()
    try:
        response = await client.get(url, follow_redirects=True)
    except httpx.HTTPError as exc:
        instagram_requests_total.labels(endpoint="redirect", status="error").inc()
        logger.warning("instagram.redirect.failed", url=url[:120], error=str(exc))
        raise UpstreamRequestFailed(f"Share redirect failed: {exc}", cause=exc) from exc
    finally:
        instagram_request_duration_seconds.labels(endpoint="redirect").observe(
            time.perf_counter() - start
        )

    instagram_requests_total.labels(endpoint="redirect", status="success").inc()
    resolved = response.url.path
    logger.debug(
        "instagram.redirect.resolved",
        url=url[:120],
        resolved=resolved[:120],
        status_code=response.status_code,
    )
    return resolved


async def normalize_url(raw_url: str, client: httpx.AsyncClient) -> MediaReference:
    """
    Resolve a raw post/reel URL to its MediaReference.

    Share links (``/share/...``) cost exactly one GET; every other URL is
    parsed locally. Raises ShortcodeNotFound when no known tag is present.
    """
    effective = raw_url
    if is_share_url(raw_url):
        effective = await resolve_share_redirect(raw_url, client)
    return build_reference(raw_url, effective)
