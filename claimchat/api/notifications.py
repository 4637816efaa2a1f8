from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from claimchat.api.internal_auth import require_internal_token
from claimchat.application.dto.evaluation_event import EvaluationCompletedDTO
from claimchat.application.use_cases.notify_evaluation import NotifyEvaluationCompletedUseCase
from claimchat.wiring.dependencies import get_notify_evaluation_use_case


router = APIRouter(dependencies=[Depends(require_internal_token)])
logger = logging.getLogger(__name__)


@router.post("/internal/events/evaluation-completed")
def evaluation_completed(
    event: EvaluationCompletedDTO,
    uc: NotifyEvaluationCompletedUseCase = Depends(get_notify_evaluation_use_case),
) -> dict[str, str]:
    outcome = uc.execute(event)
    logger.info(
        "evaluation.completed handled",
        extra={"correlation_id": event.correlation_id, "event_type": "evaluation.completed", "reason": outcome.value},
    )
    return {"status": outcome.value}
