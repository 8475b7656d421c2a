from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from reelrank.core.config import Settings, settings
from reelrank.core.http import build_http_client
from reelrank.core.logging_setup import configure_logging
from reelrank.core.middleware import RequestIDMiddleware
from reelrank.services.instagram_resolver import InstagramResolver

logger = structlog.get_logger(__name__)


def create_app(
    app_settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """
    Build the API. ``http_client`` is injected by tests; otherwise the
    lifespan opens one client for the process and closes it on shutdown.
    """
    cfg = app_settings or settings
    configure_logging(cfg.LOG_LEVEL, cfg.ENVIRONMENT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app.startup", environment=cfg.ENVIRONMENT, proxy=bool(cfg.HTTP_PROXY_URL))
        client = http_client or build_http_client(cfg)
        app.state.resolver = InstagramResolver(client, cfg)

        yield

        logger.info("app.shutdown")
        if http_client is None:
            await client.aclose()

    app = FastAPI(
        title="Reelrank API",
        description="Instagram post/reel resolution and relevance scoring",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg

    app.add_middleware(RequestIDMiddleware)

    from reelrank.api.v1 import instagram

    app.include_router(instagram.router, prefix="/api/v1/instagram", tags=["instagram"])

    @app.get("/health")
    async def health_check():
        """Liveness check; the service has no stateful dependencies."""
        return JSONResponse(content={"status": "healthy"})

    @app.get("/metrics")
    async def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
