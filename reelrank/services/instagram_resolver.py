"""Resolve raw Instagram URLs into scored content records, singly or in batches.

Pipeline per URL: normalize -> fetch (with backoff) -> map -> score.
A batch shares one anti-bot token, read-only, across all of its tasks.
Per-item failures are isolated: each URL yields either ResolveOk or
ResolveErr, in input order, and siblings keep running.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

import httpx
import structlog

from reelrank.core.config import Settings
from reelrank.core.errors import ResolutionError
from reelrank.core.metrics import instagram_resolutions_total
from reelrank.models.schemas import (
    AntiBotToken,
    ResolveErr,
    ResolveOk,
    ResolveResult,
    ScoredContent,
)
from reelrank.services.instagram_mapper import map_media
from reelrank.services.instagram_token import TokenManager
from reelrank.services.instagram_urls import normalize_url
from reelrank.services.relevance import RelevanceScorer
from reelrank.tools.social_instagram import InstagramClient

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_KIND = "internal_error"


@dataclass
class BatchResult:
    token: AntiBotToken
    results: list[ResolveResult] = field(default_factory=list)

    @property
    def records(self) -> list[ScoredContent]:
        return [r.record for r in self.results if isinstance(r, ResolveOk)]

    @property
    def errors(self) -> list[ResolveErr]:
        return [r for r in self.results if isinstance(r, ResolveErr)]


class InstagramResolver:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        *,
        scorer: RelevanceScorer | None = None,
        fetcher: InstagramClient | None = None,
        token_manager: TokenManager | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self.scorer = scorer or RelevanceScorer(settings.scoring_policy())
        self.fetcher = fetcher or InstagramClient(client, settings)
        self.token_manager = token_manager or TokenManager(client, settings)

    async def resolve(
        self,
        raw_url: str,
        token: AntiBotToken | str,
        *,
        scored: bool = True,
        now: datetime | float | None = None,
    ) -> ScoredContent:
        """Resolve one URL. Raises the ResolutionError subclass that stopped it."""
        reference = await normalize_url(raw_url, self._client)
        media = await self.fetcher.fetch_media(reference.shortcode, token)
        record = map_media(media, self._settings.INSTAGRAM_SOURCE_URL_TEMPLATE)
        if not scored:
            return record

        video = record.video
        score = self.scorer.score(
            video.timestamp,
            video.duration,
            record.user.total_media,
            record.user.total_followers,
            video.views,
            video.plays,
            now=now,
        )
        return record.model_copy(update={"score": score})

    async def _resolve_item(
        self,
        raw_url: str,
        token: AntiBotToken,
        semaphore: asyncio.Semaphore,
        scored: bool,
        now: datetime | float | None,
    ) -> ResolveResult:
        try:
            async with semaphore:
                record = await self.resolve(raw_url, token, scored=scored, now=now)
        except ResolutionError as exc:
            instagram_resolutions_total.labels(outcome=exc.kind).inc()
            logger.warning(
                "resolver.item_failed",
                url=raw_url[:120],
                kind=exc.kind,
                error=exc.message,
            )
            return ResolveErr(url=raw_url, kind=exc.kind, message=exc.message)
        except Exception as exc:
            instagram_resolutions_total.labels(outcome=INTERNAL_ERROR_KIND).inc()
            logger.exception("resolver.item_unexpected_error", url=raw_url[:120])
            return ResolveErr(url=raw_url, kind=INTERNAL_ERROR_KIND, message=str(exc))

        instagram_resolutions_total.labels(outcome="ok").inc()
        return ResolveOk(url=raw_url, record=record)

    async def resolve_many(
        self,
        urls: Sequence[str],
        token: AntiBotToken | str | None = None,
        *,
        scored: bool = True,
        now: datetime | float | None = None,
    ) -> BatchResult:
        """
        Resolve every URL concurrently with one shared token.

        Raises TokenAcquisitionFailed if no token was supplied and none could
        be fetched; individual URL failures never raise.
        """
        batch_token = await self.token_manager.acquire(token)
        if not urls:
            return BatchResult(token=batch_token)

        semaphore = asyncio.Semaphore(self._settings.FANOUT_MAX_CONCURRENCY)
        logger.info(
            "resolver.batch.start",
            url_count=len(urls),
            token_source=batch_token.source,
        )
        results = await asyncio.gather(
            *(self._resolve_item(url, batch_token, semaphore, scored, now) for url in urls)
        )
        batch = BatchResult(token=batch_token, results=list(results))
        logger.info(
            "resolver.batch.done",
            url_count=len(urls),
            ok=len(batch.records),
            failed=len(batch.errors),
        )
        return batch
