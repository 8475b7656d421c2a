import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from reelrank.core.auth import verify_internal_token
from reelrank.core.errors import TokenAcquisitionFailed
from reelrank.models.schemas import (
    ItemError,
    ResolveRequest,
    ResolveResponse,
    ScoreRequest,
    ScoreResponse,
)
from reelrank.services.instagram_resolver import InstagramResolver

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(verify_internal_token)])


def get_resolver(request: Request) -> InstagramResolver:
    return request.app.state.resolver


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_urls(
    body: ResolveRequest,
    resolver: InstagramResolver = Depends(get_resolver),
) -> ResolveResponse:
    """
    Resolve a batch of post/reel URLs.

    Returns the successful records plus the CSRF token that was used, so the
    caller can pass it back on the next batch and skip re-acquisition.
    """
    try:
        batch = await resolver.resolve_many(body.urls, body.csrf_token, scored=body.scored)
    except TokenAcquisitionFailed as exc:
        logger.warning("instagram_api.token_unavailable", error=exc.message)
        raise HTTPException(status_code=502, detail=exc.message)

    return ResolveResponse(
        data=[record.to_output() for record in batch.records],
        errors=[ItemError(url=e.url, kind=e.kind, message=e.message) for e in batch.errors],
        csrf_token=batch.token.value,
    )


@router.post("/score", response_model=ScoreResponse)
async def score_post(
    body: ScoreRequest,
    resolver: InstagramResolver = Depends(get_resolver),
) -> ScoreResponse:
    score = resolver.scorer.score(
        body.timestamp,
        body.duration,
        body.total_media,
        body.total_followers,
        body.views,
        body.plays,
        now=body.now,
    )
    return ScoreResponse(score=score)
