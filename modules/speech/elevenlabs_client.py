"""Thin wrapper around the ElevenLabs SDK."""

from __future__ import annotations

import importlib
import logging
from typing import Any, Iterable, List, Optional

from config.settings import AppConfig
from modules.errors import ProviderError
from modules.voices.catalog import Voice, VoiceLanguage

logger = logging.getLogger(__name__)


def _voice_from_sdk(item: Any) -> Voice:
    languages = [
        VoiceLanguage(
            language=getattr(lang, "language", None) or "",
            model_id=getattr(lang, "model_id", None) or "",
            accent=getattr(lang, "accent", None) or "",
            locale=getattr(lang, "locale", None) or None,
            preview_url=getattr(lang, "preview_url", None) or "",
        )
        for lang in getattr(item, "verified_languages", None) or []
    ]
    return Voice(
        voice_id=getattr(item, "voice_id", None) or "",
        name=getattr(item, "name", None) or "",
        category=getattr(item, "category", None) or "premade",
        description=getattr(item, "description", None),
        preview_url=getattr(item, "preview_url", None),
        verified_languages=languages,
    )


class ElevenLabsClient:
    """Lazily constructed SDK client exposing the three calls we need."""

    def __init__(self, config: AppConfig, client: Optional[Any] = None) -> None:
        self.config = config
        self._client = client

    def _ensure_client(self) -> Any:
        if self._client is not None:
            return self._client
        if not self.config.elevenlabs_key:
            raise ProviderError("ELEVENLABS_API_KEY is not configured.")
        try:
            sdk = importlib.import_module("elevenlabs.client")
        except ImportError as exc:
            raise ProviderError(f"elevenlabs is not installed: {exc}") from exc
        self._client = sdk.ElevenLabs(api_key=self.config.elevenlabs_key)
        return self._client

    def list_voices(self) -> List[Voice]:
        """Return every voice on the account."""
        client = self._ensure_client()
        try:
            response = client.voices.get_all()
        except Exception as exc:  # noqa: BLE001
            logger.error("Error fetching voices: %s", exc)
            raise ProviderError("Failed to fetch voices from ElevenLabs API") from exc
        return [_voice_from_sdk(item) for item in getattr(response, "voices", None) or []]

    def get_voice(self, voice_id: str) -> Voice:
        client = self._ensure_client()
        try:
            item = client.voices.get(voice_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error fetching voice %s: %s", voice_id, exc)
            raise ProviderError("Failed to fetch voice from ElevenLabs API") from exc
        return _voice_from_sdk(item)

    def convert(self, voice_id: str, text: str) -> bytes:
        """Synthesize ``text`` and return the fully buffered audio."""
        client = self._ensure_client()
        try:
            stream: Iterable[bytes] = client.text_to_speech.convert(
                voice_id,
                text=text,
                model_id=self.config.model_id,
                output_format=self.config.output_format,
            )
            return b"".join(bytes(chunk) for chunk in stream)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Error generating speech: voice=%s text=%r: %s", voice_id, text[:50], exc
            )
            raise ProviderError(
                f"Failed to generate speech from ElevenLabs API: {exc}"
            ) from exc
