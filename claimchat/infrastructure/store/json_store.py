from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Sequence

from claimchat.application.ports.conversation_store import ConversationStorePort
from claimchat.domain.entities.conversation_state import ConversationState, FSMState
from claimchat.domain.entities.outbox_event import OutboxEvent

_FILE_PREFIX = "conv_"
_PROCESSED_FILE = "_processed_message_ids.json"


class JsonConversationStore(ConversationStorePort):
    """
    One JSON file per identity holding the conversation record and the outbox events
    that identity's transitions produced. Writing both in a single file replace makes
    a transition and its events land together.
    """

    def __init__(self, data_dir: str = "./data/conversations", processed_limit: int = 10_000) -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._processed_limit = processed_limit
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._processed_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, path: Path) -> threading.Lock:
        """Get or create a lock for a conversation file."""
        with self._lock_lock:
            if path.name not in self._locks:
                self._locks[path.name] = threading.Lock()
            return self._locks[path.name]

    def _get_file_path(self, identity: str) -> Path:
        # hex keeps distinct identities on distinct files, on case-insensitive filesystems too
        encoded = identity.encode("utf-8").hex()
        return self._data_dir / f"{_FILE_PREFIX}{encoded}.json"

    @staticmethod
    def _identity_from_path(path: Path) -> str:
        return bytes.fromhex(path.stem[len(_FILE_PREFIX) :]).decode("utf-8")

    def _default_file_data(self, identity: str) -> dict[str, Any]:
        return {"identity": identity, "conversation": None, "outbox": [], "version": 1}

    def _load_file(self, path: Path, identity: str) -> dict[str, Any]:
        if not path.exists():
            return self._default_file_data(identity)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            self._logger.warning("Corrupted conversation file, starting fresh", extra={"identity": identity})
            return self._default_file_data(identity)
        data.setdefault("conversation", None)
        data.setdefault("outbox", [])
        data.setdefault("version", 1)
        return data

    def _save_file(self, path: Path, data: dict[str, Any]) -> None:
        """Write to a temp file then rename, so readers never see a partial write."""
        temp_path = path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _deserialize_conversation(self, identity: str, raw: dict[str, Any] | None) -> ConversationState:
        if not raw:
            return ConversationState(identity=identity)
        state = FSMState.parse(raw.get("state"))
        if state is None:
            self._logger.warning(
                "Unknown stored state, resetting to START",
                extra={"identity": identity, "state": raw.get("state")},
            )
            return ConversationState(identity=identity)
        return ConversationState(
            identity=identity,
            state=state,
            state_data=dict(raw.get("state_data") or {}),
            updated_at=raw.get("updated_at"),
        )

    def get(self, identity: str) -> ConversationState:
        path = self._get_file_path(identity)
        with self._get_lock(path):
            data = self._load_file(path, identity)
        return self._deserialize_conversation(identity, data["conversation"])

    def set(self, identity: str, state: FSMState, data: dict[str, Any]) -> None:
        self.commit(identity, state, data)

    def clear(self, identity: str) -> None:
        self.commit(identity, None, {})

    def commit(
        self,
        identity: str,
        state: FSMState | None,
        data: dict[str, Any],
        events: Sequence[OutboxEvent] = (),
    ) -> None:
        path = self._get_file_path(identity)
        with self._get_lock(path):
            file_data = self._load_file(path, identity)
            if state is None:
                file_data["conversation"] = None
            else:
                file_data["conversation"] = {
                    "state": state.value,
                    "state_data": data,
                    "updated_at": time.time(),
                }
            file_data["outbox"].extend(event.to_dict() for event in events)
            if file_data["conversation"] is None and not file_data["outbox"]:
                if path.exists():
                    path.unlink()
                return
            self._save_file(path, file_data)

    def has_processed(self, message_id: str) -> bool:
        with self._processed_lock:
            return message_id in self._load_processed()

    def mark_processed(self, message_id: str) -> None:
        with self._processed_lock:
            processed = self._load_processed()
            if message_id in processed:
                return
            processed.append(message_id)
            # Keep last N processed IDs
            if len(processed) > self._processed_limit:
                processed = processed[-self._processed_limit :]
            self._save_file(self._data_dir / _PROCESSED_FILE, {"message_ids": processed})

    def _load_processed(self) -> list[str]:
        path = self._data_dir / _PROCESSED_FILE
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                return list(json.load(f).get("message_ids", []))
        except (json.JSONDecodeError, OSError):
            return []

    def get_unpublished(self, limit: int = 100) -> list[OutboxEvent]:
        pending: list[OutboxEvent] = []
        for path in self._data_dir.glob(f"{_FILE_PREFIX}*.json"):
            identity = self._identity_from_path(path)
            with self._get_lock(path):
                file_data = self._load_file(path, identity)
            pending.extend(
                OutboxEvent.from_dict(raw) for raw in file_data["outbox"] if raw.get("published_at") is None
            )
        pending.sort(key=lambda event: event.created_at)
        return pending[:limit]

    def mark_published(self, event_id: str) -> OutboxEvent | None:
        for path in self._data_dir.glob(f"{_FILE_PREFIX}*.json"):
            identity = self._identity_from_path(path)
            with self._get_lock(path):
                file_data = self._load_file(path, identity)
                for index, raw in enumerate(file_data["outbox"]):
                    if raw.get("id") != event_id:
                        continue
                    event = OutboxEvent.from_dict(raw)
                    if event.published_at is None:
                        event = event.mark_published()
                        file_data["outbox"][index] = event.to_dict()
                        self._save_file(path, file_data)
                    return event
        return None

    def get_event(self, event_id: str) -> OutboxEvent | None:
        for path in self._data_dir.glob(f"{_FILE_PREFIX}*.json"):
            identity = self._identity_from_path(path)
            with self._get_lock(path):
                file_data = self._load_file(path, identity)
            for raw in file_data["outbox"]:
                if raw.get("id") == event_id:
                    return OutboxEvent.from_dict(raw)
        return None
