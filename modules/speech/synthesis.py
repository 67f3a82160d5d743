"""Speech generation service (fixture and live modes)."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from config.settings import AppConfig
from modules.errors import ProviderError, ValidationError
from modules.services.records import AudioPayload, AudioReference, InlineAudio
from modules.voices.fixtures import FIXTURE_VOICE_NAMES, MOCK_AUDIO_URLS, UNKNOWN_VOICE_NAME

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 500
AUDIO_FORMAT = "mp3"
# Rough bytes-per-second of 128 kbps mp3.
BYTES_PER_SECOND_ESTIMATE = 16000


@dataclass(frozen=True, slots=True)
class SynthesisResult:
    """Response of a synthesis call."""

    audio: AudioPayload
    duration_seconds: float
    voice_name: str
    audio_format: str = AUDIO_FORMAT
    message: str = ""


class SpeechSynthesizer(Protocol):
    """Interface shared by the in-process service and the HTTP client."""

    def synthesize(self, text: str, voice_id: str) -> SynthesisResult:
        ...


def validate_request(text: Optional[str], voice_id: Optional[str]) -> None:
    """Raise ValidationError naming the first failed precondition."""
    if not text or not voice_id:
        field = "text" if not text else "voice_id"
        raise ValidationError("Text and voice_id are required", field=field)
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(
            f"Text must be {MAX_TEXT_LENGTH} characters or less", field="text"
        )


class FixtureSynthesizer:
    """Return pre-recorded sample audio instead of calling the provider."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def synthesize(self, text: str, voice_id: str) -> SynthesisResult:
        _ = text
        return SynthesisResult(
            audio=AudioReference(self._rng.choice(MOCK_AUDIO_URLS)),
            duration_seconds=float(self._rng.randint(10, 39)),
            voice_name=FIXTURE_VOICE_NAMES.get(voice_id, UNKNOWN_VOICE_NAME),
            message="Mock audio generated successfully",
        )


class LiveSynthesizer:
    """Delegate to ElevenLabs and buffer the full audio in memory."""

    def __init__(self, client) -> None:
        self.client = client

    def synthesize(self, text: str, voice_id: str) -> SynthesisResult:
        audio = self.client.convert(voice_id, text)
        if not audio:
            raise ProviderError("Provider returned no audio data")
        voice = self.client.get_voice(voice_id)
        return SynthesisResult(
            audio=InlineAudio(audio),
            duration_seconds=float(len(audio) // BYTES_PER_SECOND_ESTIMATE),
            voice_name=voice.name,
            message="Audio generated successfully",
        )


class SpeechGenerationService:
    """Validate requests and route them to the configured synthesizer."""

    def __init__(self, config: AppConfig, synthesizer: Optional[SpeechSynthesizer] = None) -> None:
        self.config = config
        self._synthesizer = synthesizer

    def _resolve_synthesizer(self) -> SpeechSynthesizer:
        if self._synthesizer is None:
            if self.config.use_mock:
                self._synthesizer = FixtureSynthesizer()
            else:
                from modules.speech.elevenlabs_client import ElevenLabsClient

                self._synthesizer = LiveSynthesizer(ElevenLabsClient(self.config))
        return self._synthesizer

    def synthesize(self, text: str, voice_id: str) -> SynthesisResult:
        """Return synthesized audio for ``text`` spoken by ``voice_id``."""
        validate_request(text, voice_id)
        synthesizer = self._resolve_synthesizer()
        try:
            result = synthesizer.synthesize(text, voice_id)
        except (ValidationError, ProviderError):
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Synthesis failed for voice %s: %s", voice_id, exc)
            raise ProviderError(str(exc) or "Failed to generate audio") from exc
        logger.info(
            "Generated %s audio: voice=%s duration=%.0fs",
            "inline" if isinstance(result.audio, InlineAudio) else "reference",
            voice_id,
            result.duration_seconds,
        )
        return result
