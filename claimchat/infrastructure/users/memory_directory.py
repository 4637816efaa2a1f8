from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from claimchat.application.ports.user_directory import UserDirectoryPort
from claimchat.domain.entities.user import User


class MemoryUserDirectory(UserDirectoryPort):
    def __init__(self) -> None:
        self._by_id: dict[str, User] = {}
        self._by_phone: dict[str, str] = {}
        self._lock = threading.Lock()

    def find_by_phone(self, phone_number: str) -> User | None:
        with self._lock:
            user_id = self._by_phone.get(phone_number)
            return self._by_id.get(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self._by_id.get(user_id)

    def create(self, phone_number: str) -> User:
        with self._lock:
            existing = self._by_phone.get(phone_number)
            if existing:
                return self._by_id[existing]
            user = User(id=str(uuid.uuid4()), phone_number=phone_number, created_at=datetime.now(timezone.utc))
            self._by_id[user.id] = user
            self._by_phone[phone_number] = user.id
            return user

    def mark_verified(self, user_id: str) -> User:
        with self._lock:
            user = self._by_id[user_id]
            if not user.is_verified:
                user = replace(user, verified_at=datetime.now(timezone.utc))
                self._by_id[user_id] = user
            return user
