from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from claimchat.api.internal_auth import require_internal_token
from claimchat.wiring.dependencies import get_drain_outbox_use_case


router = APIRouter(dependencies=[Depends(require_internal_token)])
logger = logging.getLogger(__name__)


@router.post("/internal/outbox/drain")
async def drain_outbox() -> dict[str, int]:
    result = await run_in_threadpool(get_drain_outbox_use_case().execute)
    logger.info("Outbox drain requested", extra={"reason": f"published={result.published} failed={result.failed}"})
    return {"published": result.published, "failed": result.failed}
