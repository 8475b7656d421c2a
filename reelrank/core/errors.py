"""Error taxonomy for content resolution.

Each error carries a stable ``kind`` string. The fan-out coordinator reports
that string per failed item, so callers can tell "malformed URL" apart from
"upstream throttled us out" without parsing messages.
"""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for every per-item resolution failure."""

    kind: str = "resolution_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


class ShortcodeNotFound(ResolutionError):
    """The URL path has no ``p``/``reel``/``tv``/``reels`` segment followed by a code."""

    kind = "shortcode_not_found"

    def __init__(self, url: str) -> None:
        super().__init__(f"No shortcode found in URL: {url}")
        self.url = url


class TokenAcquisitionFailed(ResolutionError):
    kind = "token_acquisition_failed"


class UpstreamRequestFailed(ResolutionError):
    """Network failure, non-throttle HTTP error, or exhausted backoff."""

    kind = "upstream_request_failed"

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.status_code = status_code


class UnsupportedContentType(ResolutionError):
    """Payload lacks the media node this system models (carousel, live, ...)."""

    kind = "unsupported_content_type"


class ScoringDegraded(ResolutionError):
    """Raised inside the scorer only; recovered there as a score of 0."""

    kind = "scoring_degraded"
