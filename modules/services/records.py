"""Data model for generated speech and its persisted form."""

from __future__ import annotations

import base64
import binascii
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

DEFAULT_MAX_HISTORY_ITEMS = 10
# 毫秒时间戳上限（约公元 2286 年）
MAX_TIMESTAMP_MS = 1e13
MAX_DURATION_SECONDS = 24 * 3600


@dataclass(frozen=True, slots=True)
class InlineAudio:
    """Encoded audio bytes produced by the provider."""

    data: bytes

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True, slots=True)
class AudioReference:
    """Reference to a pre-existing audio asset (fixture mode)."""

    url: str


AudioPayload = Union[InlineAudio, AudioReference]


def payload_to_fields(audio: AudioPayload) -> Dict[str, str]:
    """Return the ``audioData``/``audioUrl`` field for the given payload."""
    if isinstance(audio, InlineAudio):
        return {"audioData": audio.to_base64()}
    if isinstance(audio, AudioReference):
        return {"audioUrl": audio.url}
    raise TypeError(f"Unsupported audio payload: {type(audio).__name__}")


def payload_from_fields(data: Dict[str, Any]) -> AudioPayload:
    """Rebuild a payload from wire/persisted fields; inline bytes take precedence."""
    encoded = data.get("audioData")
    if encoded:
        try:
            return InlineAudio(base64.b64decode(str(encoded), validate=True))
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Invalid base64 audio data: {exc}") from exc
    url = data.get("audioUrl")
    if url:
        return AudioReference(str(url))
    raise ValueError("Neither audioData nor audioUrl present")


def _bounded_number(raw: Any, name: str, upper: float) -> float:
    value = float(raw or 0)
    if not math.isfinite(value) or not 0 <= value < upper:
        raise ValueError(f"History entry {name} out of range: {raw!r}")
    return value


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """One completed text-to-speech generation stored in history."""

    id: str
    source_text: str
    voice_id: str
    voice_name: str
    audio: AudioPayload
    duration_seconds: float
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "text": self.source_text,
            "voiceId": self.voice_id,
            "voiceName": self.voice_name,
            "duration": self.duration_seconds,
            "timestamp": int(self.created_at * 1000),
        }
        payload.update(payload_to_fields(self.audio))
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationResult":
        """Parse a persisted entry; raises ValueError/KeyError/TypeError on malformed input."""
        if not isinstance(data, dict):
            raise TypeError("History entry must be an object")
        entry_id = data["id"]
        if not isinstance(entry_id, str) or not entry_id:
            raise ValueError("History entry id must be a non-empty string")
        return cls(
            id=entry_id,
            source_text=str(data.get("text") or ""),
            voice_id=str(data.get("voiceId") or ""),
            voice_name=str(data.get("voiceName") or ""),
            audio=payload_from_fields(data),
            duration_seconds=_bounded_number(data.get("duration"), "duration", upper=MAX_DURATION_SECONDS),
            created_at=_bounded_number(data.get("timestamp"), "timestamp", upper=MAX_TIMESTAMP_MS) / 1000.0,
        )


@dataclass(slots=True)
class HistorySettings:
    """Settings record persisted alongside the log."""

    max_history_items: int = DEFAULT_MAX_HISTORY_ITEMS
    auto_save: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"maxHistoryItems": self.max_history_items, "autoSave": self.auto_save}


@dataclass(slots=True)
class HistoryState:
    """Whole persisted aggregate: settings, log and last result."""

    settings: HistorySettings = field(default_factory=HistorySettings)
    history: List[GenerationResult] = field(default_factory=list)
    last_result: Optional[GenerationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "history": [item.to_dict() for item in self.history],
            "lastGeneratedAudio": self.last_result.to_dict() if self.last_result else None,
            "settings": self.settings.to_dict(),
        }
