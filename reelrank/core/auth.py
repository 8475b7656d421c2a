import hmac

import structlog
from fastapi import Header, HTTPException, Request

logger = structlog.get_logger(__name__)


async def verify_internal_token(
    request: Request, x_internal_token: str | None = Header(None)
) -> bool:
    """
    Verify X-Internal-Token against the app's INTERNAL_API_TOKEN.

    Skipped when no token is configured (local dev).
    """
    expected = request.app.state.settings.INTERNAL_API_TOKEN
    if not expected:
        logger.debug("auth.internal_token_skipped", reason="not_configured")
        return True

    if not x_internal_token:
        logger.warning("auth.internal_token_missing")
        raise HTTPException(status_code=403, detail="Missing X-Internal-Token header")

    if not hmac.compare_digest(x_internal_token, expected):
        logger.warning("auth.internal_token_invalid")
        raise HTTPException(status_code=403, detail="Invalid X-Internal-Token")

    return True
