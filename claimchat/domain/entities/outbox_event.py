from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

AGGREGATE_TYPES = ("user", "journey", "claim")

SCHEMA_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OutboxEvent:
    aggregate_type: str
    aggregate_id: str
    event_type: str
    payload: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    published_at: datetime | None = None  # None until drained

    def __post_init__(self) -> None:
        if self.aggregate_type not in AGGREGATE_TYPES:
            raise ValueError(f"Unknown aggregate_type: {self.aggregate_type}")

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    def mark_published(self, when: datetime | None = None) -> OutboxEvent:
        if self.published_at is not None:
            return self
        return replace(self, published_at=when or _utcnow())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "aggregate_type": self.aggregate_type,
            "aggregate_id": self.aggregate_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
            "published_at": self.published_at.isoformat() if self.published_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OutboxEvent:
        published_at = data.get("published_at")
        return cls(
            id=data["id"],
            aggregate_type=data["aggregate_type"],
            aggregate_id=data["aggregate_id"],
            event_type=data["event_type"],
            payload=dict(data.get("payload") or {}),
            created_at=datetime.fromisoformat(data["created_at"]),
            published_at=datetime.fromisoformat(published_at) if published_at else None,
        )


def new_event(
    aggregate_type: str,
    aggregate_id: str,
    event_type: str,
    payload: dict[str, Any],
    correlation_id: str | None = None,
    causation_id: str | None = None,
) -> OutboxEvent:
    """Build an unpublished event with the conventional envelope fields in the payload."""
    body = {"schema_version": SCHEMA_VERSION, **payload}
    if correlation_id:
        body["correlation_id"] = correlation_id
    if causation_id:
        body["causation_id"] = causation_id
    return OutboxEvent(
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        event_type=event_type,
        payload=body,
    )
