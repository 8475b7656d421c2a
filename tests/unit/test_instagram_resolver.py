"""Unit tests for single-URL resolution and the fan-out coordinator."""

from unittest.mock import AsyncMock

import httpx
import pytest

from reelrank.core.errors import TokenAcquisitionFailed
from reelrank.models.schemas import ResolveErr, ResolveOk
from reelrank.services.instagram_resolver import InstagramResolver
from reelrank.tools.social_instagram import InstagramClient

from .fakes import NOW, graphql_response, media_node, mock_client, requested_shortcode


class FakeInstagram:
    """Routes landing-page and graphql requests; records what was called."""

    def __init__(self, *, set_cookie: bool = True, unsupported: set[str] | None = None) -> None:
        self.set_cookie = set_cookie
        self.unsupported = unsupported or set()
        self.token_requests = 0
        self.graphql_tokens: list[str] = []
        self.shortcodes: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/" and request.method == "GET":
            self.token_requests += 1
            if not self.set_cookie:
                return httpx.Response(200, text="no cookie")
            return httpx.Response(200, headers=[("set-cookie", "csrftoken=batchtok; Path=/")])

        if request.url.path == "/graphql/query":
            shortcode = requested_shortcode(request)
            self.graphql_tokens.append(request.headers["X-CSRFToken"])
            self.shortcodes.append(shortcode)
            if shortcode in self.unsupported:
                return graphql_response(None)
            if shortcode.startswith("Down"):
                return httpx.Response(500)
            return graphql_response(media_node(shortcode))

        return httpx.Response(404)


def _resolver(client: httpx.AsyncClient, settings) -> InstagramResolver:
    fetcher = InstagramClient(client, settings, sleep=AsyncMock())
    return InstagramResolver(client, settings, fetcher=fetcher)


@pytest.mark.asyncio
async def test_resolve_single_url_scores_record(settings) -> None:
    fake = FakeInstagram()

    async with mock_client(fake) as client:
        record = await _resolver(client, settings).resolve(
            "https://www.instagram.com/reel/One1/", "tok", now=NOW
        )

    assert record.source_url == "https://instagram.com/reel/One1"
    assert record.score is not None
    assert 0 < record.score < 10
    assert fake.graphql_tokens == ["tok"]


@pytest.mark.asyncio
async def test_resolve_unscored_leaves_score_empty(settings) -> None:
    async with mock_client(FakeInstagram()) as client:
        record = await _resolver(client, settings).resolve(
            "https://www.instagram.com/p/Plain/", "tok", scored=False
        )

    assert record.score is None


@pytest.mark.asyncio
async def test_batch_with_malformed_urls_returns_successful_subset(settings) -> None:
    """5 URLs, 2 malformed: 3 records, no batch-level exception."""
    urls = [
        "https://www.instagram.com/reel/A1/",
        "https://www.instagram.com/someuser/",
        "https://www.instagram.com/p/B2/",
        "not a url",
        "https://www.instagram.com/tv/C3/",
    ]
    fake = FakeInstagram()

    async with mock_client(fake) as client:
        batch = await _resolver(client, settings).resolve_many(urls, now=NOW)

    assert len(batch.records) == 3
    assert [r.video.id for r in batch.records] == ["A1", "B2", "C3"]
    assert [r.url for r in batch.results] == urls
    assert [type(r) for r in batch.results] == [
        ResolveOk,
        ResolveErr,
        ResolveOk,
        ResolveErr,
        ResolveOk,
    ]
    assert {e.kind for e in batch.errors} == {"shortcode_not_found"}
    assert batch.token.value == "batchtok"
    assert batch.token.source == "fetched"
    assert fake.token_requests == 1
    assert set(fake.graphql_tokens) == {"batchtok"}


@pytest.mark.asyncio
async def test_error_kinds_are_preserved_per_item(settings) -> None:
    urls = [
        "https://www.instagram.com/reel/Good/",
        "https://www.instagram.com/p/Carousel/",
        "https://www.instagram.com/reel/Down1/",
    ]
    fake = FakeInstagram(unsupported={"Carousel"})

    async with mock_client(fake) as client:
        batch = await _resolver(client, settings).resolve_many(urls, "given")

    kinds = {e.url: e.kind for e in batch.errors}
    assert kinds == {
        "https://www.instagram.com/p/Carousel/": "unsupported_content_type",
        "https://www.instagram.com/reel/Down1/": "upstream_request_failed",
    }
    assert [r.video.id for r in batch.records] == ["Good"]


@pytest.mark.asyncio
async def test_supplied_token_is_reused_without_fetching(settings) -> None:
    fake = FakeInstagram()

    async with mock_client(fake) as client:
        batch = await _resolver(client, settings).resolve_many(
            ["https://www.instagram.com/reel/R1/", "https://www.instagram.com/reel/R2/"],
            "reused-token",
        )

    assert fake.token_requests == 0
    assert fake.graphql_tokens == ["reused-token", "reused-token"]
    assert batch.token.value == "reused-token"
    assert batch.token.source == "caller-supplied"


@pytest.mark.asyncio
async def test_token_failure_raises_for_the_batch(settings) -> None:
    fake = FakeInstagram(set_cookie=False)

    async with mock_client(fake) as client:
        with pytest.raises(TokenAcquisitionFailed):
            await _resolver(client, settings).resolve_many(["https://www.instagram.com/reel/A/"])

    assert fake.shortcodes == []


@pytest.mark.asyncio
async def test_unexpected_exception_is_isolated(settings) -> None:
    async with mock_client(FakeInstagram()) as client:
        resolver = _resolver(client, settings)
        resolver.scorer.score = lambda *args, **kwargs: 1 / 0  # type: ignore[method-assign]
        batch = await resolver.resolve_many(["https://www.instagram.com/reel/Z/"], "tok")

    assert batch.records == []
    assert batch.errors[0].kind == "internal_error"


@pytest.mark.asyncio
async def test_empty_batch_still_returns_token(settings) -> None:
    async with mock_client(FakeInstagram()) as client:
        batch = await _resolver(client, settings).resolve_many([], "tok")

    assert batch.results == []
    assert batch.token.value == "tok"


@pytest.mark.asyncio
async def test_unparseable_url_is_reported_as_shortcode_not_found(settings) -> None:
    fake = FakeInstagram()

    async with mock_client(fake) as client:
        batch = await _resolver(client, settings).resolve_many(["https://[bad/foo"], "tok")

    assert batch.records == []
    assert batch.errors[0].kind == "shortcode_not_found"
    assert fake.shortcodes == []
