from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from claimchat.application.ports.user_directory import UserDirectoryPort
from claimchat.domain.entities.user import User

_USERS_FILE = "users.json"


class JsonUserDirectory(UserDirectoryPort):
    """
    Keeps every registered user in a single users.json under `data_dir`, so user ids
    survive a restart alongside the conversations that reference them.
    """

    def __init__(self, data_dir: str = "./data/users") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._path = self._data_dir / _USERS_FILE
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"users": {}, "version": 1}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            # an unreadable file is never treated as an empty directory
            self._logger.error("Unreadable users file", extra={"path": str(self._path)})
            raise
        data.setdefault("users", {})
        return data

    def _save(self, data: dict[str, Any]) -> None:
        temp_path = self._path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _find_phone(self, data: dict[str, Any], phone_number: str) -> User | None:
        for raw in data["users"].values():
            if raw.get("phone_number") == phone_number:
                return User.from_dict(raw)
        return None

    def find_by_phone(self, phone_number: str) -> User | None:
        with self._lock:
            return self._find_phone(self._load(), phone_number)

    def find_by_id(self, user_id: str) -> User | None:
        with self._lock:
            raw = self._load()["users"].get(user_id)
        return User.from_dict(raw) if raw else None

    def create(self, phone_number: str) -> User:
        with self._lock:
            data = self._load()
            existing = self._find_phone(data, phone_number)
            if existing:
                return existing
            user = User(id=str(uuid.uuid4()), phone_number=phone_number, created_at=datetime.now(timezone.utc))
            data["users"][user.id] = user.to_dict()
            self._save(data)
            self._logger.info("User registered", extra={"user_id": user.id})
            return user

    def mark_verified(self, user_id: str) -> User:
        with self._lock:
            data = self._load()
            user = User.from_dict(data["users"][user_id])
            if not user.is_verified:
                user = replace(user, verified_at=datetime.now(timezone.utc))
                data["users"][user_id] = user.to_dict()
                self._save(data)
            return user
