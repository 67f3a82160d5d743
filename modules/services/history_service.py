"""Generation history tracking."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Optional

from modules.services.records import (
    DEFAULT_MAX_HISTORY_ITEMS,
    GenerationResult,
    HistorySettings,
    HistoryState,
)
from modules.services.storage_service import KeyValueStorage, StorageResult

logger = logging.getLogger(__name__)

STORAGE_KEY = "ai-voice-studio-data"
STORAGE_CAPACITY_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class StorageUsage:
    """Informational view of how much of the storage budget is used."""

    used_bytes: int
    capacity_bytes: int
    percent_used: float
    available_bytes: int


class ResultStore:
    """Bounded, most-recent-first log of generation results.

    The aggregate (settings, log, last result) is loaded lazily, mutated in
    place and written back after every mutation. Storage failures never reach
    the caller: unreadable state is treated as empty, and a rejected write is
    retried once with the log cut to half its capacity.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        max_items: int = DEFAULT_MAX_HISTORY_ITEMS,
        capacity_bytes: int = STORAGE_CAPACITY_BYTES,
        key: str = STORAGE_KEY,
    ) -> None:
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.storage = storage
        self.max_items = max_items
        self.capacity_bytes = capacity_bytes
        self.key = key
        self._lock = threading.RLock()
        self._state: Optional[HistoryState] = None
        self._synced_version: Optional[int] = None

    # Public API ---------------------------------------------------------------
    def insert(self, result: GenerationResult) -> None:
        """Make ``result`` the newest entry and the last result."""
        with self._lock:
            state = self._load()
            history = [item for item in state.history if item.id != result.id]
            history.insert(0, result)
            del history[self.max_items:]
            state.history = history
            state.last_result = result
            self._persist(state)

    def list(self) -> List[GenerationResult]:
        """Return the log, newest first."""
        with self._lock:
            return list(self._load().history)

    def get_last_result(self) -> Optional[GenerationResult]:
        with self._lock:
            return self._load().last_result

    def remove_by_id(self, result_id: str) -> None:
        """Drop the entry with ``result_id``; unknown ids are ignored."""
        with self._lock:
            state = self._load()
            remaining = [item for item in state.history if item.id != result_id]
            if len(remaining) == len(state.history):
                return
            state.history = remaining
            if state.last_result is not None and state.last_result.id == result_id:
                state.last_result = remaining[0] if remaining else None
            self._persist(state)

    def clear(self) -> None:
        with self._lock:
            state = self._load()
            state.history = []
            state.last_result = None
            self._persist(state)

    @property
    def settings(self) -> HistorySettings:
        with self._lock:
            current = self._load().settings
            return HistorySettings(current.max_history_items, current.auto_save)

    def get_storage_usage(self) -> StorageUsage:
        used = self.storage.size(self.key)
        capacity = self.capacity_bytes
        return StorageUsage(
            used_bytes=used,
            capacity_bytes=capacity,
            percent_used=(used / capacity) * 100 if capacity else 0.0,
            available_bytes=capacity - used,
        )

    def changed_externally(self) -> bool:
        """Return True when another writer replaced the record since our last sync."""
        if self._state is None:
            return False
        return self.storage.version(self.key) != self._synced_version

    def reload(self) -> None:
        """Forget the in-memory aggregate; the next access reads storage again."""
        with self._lock:
            self._state = None
            self._synced_version = None

    # Internal helpers ---------------------------------------------------------
    def _empty_state(self) -> HistoryState:
        return HistoryState(settings=HistorySettings(max_history_items=self.max_items))

    def _load(self) -> HistoryState:
        if self._state is not None and not self.changed_externally():
            return self._state

        result = self.storage.read(self.key)
        version = self.storage.version(self.key)
        if not result.ok:
            logger.warning("Error reading history, starting empty: %s", result.error)
            state = self._empty_state()
        elif result.value is None:
            state = self._empty_state()
        else:
            try:
                state = self._decode(result.value)
            except (ValueError, TypeError) as exc:
                logger.warning("Corrupt history record ignored: %s", exc)
                state = self._empty_state()

        self._state = state
        self._synced_version = version
        return state

    def _decode(self, raw: str) -> HistoryState:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError("History record must be a JSON object")

        state = self._empty_state()
        raw_settings = data.get("settings")
        if isinstance(raw_settings, dict) and isinstance(raw_settings.get("autoSave"), bool):
            state.settings.auto_save = raw_settings["autoSave"]

        seen: set[str] = set()
        raw_history = data.get("history") or []
        if not isinstance(raw_history, list):
            raise TypeError("History log must be a JSON array")
        for entry in raw_history:
            parsed = self._decode_entry(entry)
            if parsed is None or parsed.id in seen:
                continue
            seen.add(parsed.id)
            state.history.append(parsed)
        del state.history[self.max_items:]

        last = data.get("lastGeneratedAudio")
        state.last_result = self._decode_entry(last) if last else None
        return state

    @staticmethod
    def _decode_entry(entry: Any) -> Optional[GenerationResult]:
        try:
            return GenerationResult.from_dict(entry)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed history entry: %s", exc)
            return None

    def _write(self, state: HistoryState) -> StorageResult:
        payload = json.dumps(state.to_dict(), ensure_ascii=False)
        return self.storage.write(self.key, payload)

    def _commit(self, state: HistoryState) -> None:
        self._state = state
        self._synced_version = self.storage.version(self.key)

    def _persist(self, state: HistoryState) -> bool:
        result = self._write(state)
        if result.ok:
            self._commit(state)
            return True

        logger.warning("Error saving history: %s", result.error)
        state.history = state.history[: max(1, self.max_items // 2)]
        retry = self._write(state)
        if retry.ok:
            logger.info("Cleared old history items to free up space (kept %d)", len(state.history))
            self._commit(state)
            return True

        logger.error("Saving history failed after trimming, change dropped: %s", retry.error)
        self._state = None
        self._synced_version = None
        return False
