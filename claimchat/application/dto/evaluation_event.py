from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EvaluationCompletedDTO(BaseModel):
    """Payload of an evaluation.completed event from the eligibility engine."""

    model_config = ConfigDict(extra="ignore")

    journey_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    eligible: bool
    scheme: str = Field(min_length=1)
    compensation_pence: int = Field(default=0, ge=0)
    delay_minutes: int = Field(default=0, ge=0)
    correlation_id: str | None = None
