"""Resolve and score a batch of Instagram URLs from the command line.

Runs the same resolver the API uses and prints the canonical records as JSON.
Pass --csrf-token to reuse a token printed by an earlier run.

    python scripts/resolve_instagram.py https://www.instagram.com/reel/ABC/ ...
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from reelrank.core.config import settings
from reelrank.core.errors import TokenAcquisitionFailed
from reelrank.core.http import build_http_client
from reelrank.core.logging_setup import configure_logging
from reelrank.services.instagram_resolver import InstagramResolver


async def run(urls: list[str], csrf_token: str | None, scored: bool) -> int:
    async with build_http_client(settings) as client:
        resolver = InstagramResolver(client, settings)
        try:
            batch = await resolver.resolve_many(urls, csrf_token, scored=scored)
        except TokenAcquisitionFailed as exc:
            print(f"Token acquisition failed: {exc.message}", file=sys.stderr)
            return 2

    records = sorted(
        (r.to_output() for r in batch.records),
        key=lambda r: r.get("score", 0.0),
        reverse=True,
    )
    output = {
        "data": records,
        "errors": [e.model_dump(exclude={"ok"}) for e in batch.errors],
        "csrf_token": batch.token.value,
    }
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0 if records or not urls else 1


def main() -> None:
    p = argparse.ArgumentParser(description="Resolve Instagram post/reel URLs into scored records")
    p.add_argument("urls", nargs="+", help="Post, reel or share URLs")
    p.add_argument("--csrf-token", help="Reuse an existing CSRF token instead of fetching one")
    p.add_argument("--no-score", action="store_true", help="Skip relevance scoring")
    p.add_argument("--log-level", default=settings.LOG_LEVEL)
    args = p.parse_args()

    configure_logging(args.log_level, settings.ENVIRONMENT)
    sys.exit(asyncio.run(run(args.urls, args.csrf_token, scored=not args.no_score)))


if __name__ == "__main__":
    main()
