"""Voice catalog provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from config.settings import AppConfig
from modules.voices.fixtures import FIXTURE_VOICES

logger = logging.getLogger(__name__)

MAX_LIVE_VOICES = 5


@dataclass(slots=True)
class VoiceLanguage:
    """Language a voice has been verified for."""

    language: str
    model_id: str = ""
    accent: str = ""
    locale: Optional[str] = None
    preview_url: str = ""


@dataclass(slots=True)
class Voice:
    """Selectable catalog entry."""

    voice_id: str
    name: str
    category: str = "premade"
    description: Optional[str] = None
    preview_url: Optional[str] = None
    verified_languages: List[VoiceLanguage] = field(default_factory=list)

    @property
    def per_language_previews(self) -> Dict[str, str]:
        """Map language code to its preview clip."""
        return {
            item.language: item.preview_url
            for item in self.verified_languages
            if item.language and item.preview_url
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Voice":
        languages = [
            VoiceLanguage(
                language=str(item.get("language") or ""),
                model_id=str(item.get("model_id") or ""),
                accent=str(item.get("accent") or ""),
                locale=item.get("locale"),
                preview_url=str(item.get("preview_url") or ""),
            )
            for item in data.get("verified_languages") or []
            if isinstance(item, dict)
        ]
        return cls(
            voice_id=str(data.get("voice_id") or ""),
            name=str(data.get("name") or ""),
            category=str(data.get("category") or "premade"),
            description=data.get("description"),
            preview_url=data.get("preview_url"),
            verified_languages=languages,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the wire field names of the HTTP API."""
        payload: Dict[str, Any] = {
            "voice_id": self.voice_id,
            "name": self.name,
            "category": self.category,
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.preview_url is not None:
            payload["preview_url"] = self.preview_url
        if self.verified_languages:
            payload["verified_languages"] = [
                {
                    "language": item.language,
                    "model_id": item.model_id,
                    "accent": item.accent,
                    "locale": item.locale,
                    "preview_url": item.preview_url,
                }
                for item in self.verified_languages
            ]
        return payload


class VoiceSource(Protocol):
    """Anything able to return the vendor's full voice list."""

    def list_voices(self) -> List[Voice]:
        ...


def fixture_voices() -> List[Voice]:
    """Return fresh copies of the built-in voices."""
    return [Voice.from_dict(entry) for entry in FIXTURE_VOICES]


class VoiceCatalog:
    """Supply the selectable voices, falling back to fixtures on any failure."""

    def __init__(self, config: AppConfig, source: Optional[VoiceSource] = None) -> None:
        self.config = config
        self._source = source

    def _resolve_source(self) -> VoiceSource:
        if self._source is None:
            from modules.speech.elevenlabs_client import ElevenLabsClient

            self._source = ElevenLabsClient(self.config)
        return self._source

    def list_voices(self) -> List[Voice]:
        """Return the catalog; this call does not raise."""
        if self.config.use_mock:
            return fixture_voices()

        try:
            voices = self._resolve_source().list_voices()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Fetching voices failed, using fixtures: %s", exc)
            return fixture_voices()

        premade = [voice for voice in voices if voice.category == "premade"]
        return premade[:MAX_LIVE_VOICES]

    def get_voice(self, voice_id: str) -> Optional[Voice]:
        """Look a voice up in the current catalog."""
        if not voice_id:
            return None
        for voice in self.list_voices():
            if voice.voice_id == voice_id:
                return voice
        return None
