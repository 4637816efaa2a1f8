from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class User:
    id: str
    phone_number: str  # E.164
    created_at: datetime
    verified_at: datetime | None = None

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "phone_number": self.phone_number,
            "created_at": self.created_at.isoformat(),
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        verified_at = data.get("verified_at")
        return cls(
            id=data["id"],
            phone_number=data["phone_number"],
            created_at=datetime.fromisoformat(data["created_at"]),
            verified_at=datetime.fromisoformat(verified_at) if verified_at else None,
        )
