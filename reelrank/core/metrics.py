"""Prometheus metrics for the Instagram resolution pipeline.

Provides counters and histograms for tracking:
- Upstream request outcomes and latency (token page, graphql, share redirect)
- Throttled responses that triggered backoff
- Per-item resolution outcomes in fan-out batches
- Scorer degradations
"""

from prometheus_client import Counter, Histogram

instagram_requests_total = Counter(
    "instagram_requests_total",
    "Total outbound Instagram requests",
    ["endpoint", "status"],  # token/graphql/redirect, success/throttled/error
)

instagram_request_duration_seconds = Histogram(
    "instagram_request_duration_seconds",
    "Outbound Instagram request duration in seconds",
    ["endpoint"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

instagram_throttled_total = Counter(
    "instagram_throttled_total",
    "Throttled Instagram responses that triggered a backoff wait",
    ["status_code"],
)

instagram_resolutions_total = Counter(
    "instagram_resolutions_total",
    "Per-URL resolution outcomes",
    ["outcome"],  # ok or an error kind
)

relevance_score_degraded_total = Counter(
    "relevance_score_degraded_total",
    "Scoring calls that fell back to 0 because of malformed signals",
)
