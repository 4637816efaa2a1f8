from __future__ import annotations

import hmac
import logging

from fastapi import Header, HTTPException

from claimchat.core.config import settings

INTERNAL_TOKEN_HEADER = "X-Internal-Token"

logger = logging.getLogger(__name__)


def require_internal_token(x_internal_token: str | None = Header(default=None)) -> None:
    """Gate for /internal routes. Without INTERNAL_API_TOKEN they stay open in dev/local only."""
    expected = settings.INTERNAL_API_TOKEN
    if not expected:
        if settings.ENV.lower() in {"dev", "local", "test"}:
            return
        logger.warning("Internal route called but INTERNAL_API_TOKEN is not configured")
        raise HTTPException(status_code=403, detail="Internal API disabled")
    if not x_internal_token or not hmac.compare_digest(x_internal_token, expected):
        logger.warning("Rejected internal API token")
        raise HTTPException(status_code=401, detail="Invalid internal token")
