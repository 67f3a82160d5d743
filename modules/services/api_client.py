"""HTTP client for a remote voice studio API server."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from modules.errors import ProviderError, ValidationError
from modules.services.records import payload_from_fields
from modules.speech.synthesis import AUDIO_FORMAT, SynthesisResult
from modules.voices.catalog import Voice

logger = logging.getLogger(__name__)


class VoiceStudioApiClient:
    """Call ``GET /voices`` and ``POST /generate`` on another server."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _decode(self, response: requests.Response, default_message: str) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = str(body.get("message") or f"{default_message} (HTTP {response.status_code})")
        if response.status_code == 400:
            raise ValidationError(message)
        if not response.ok or not body.get("success"):
            raise ProviderError(message)
        return body

    def list_voices(self) -> List[Voice]:
        try:
            response = self.session.get(f"{self.base_url}/voices", timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Error fetching voices: %s", exc)
            raise ProviderError(f"Failed to fetch voices: {exc}") from exc
        body = self._decode(response, "Failed to fetch voices")
        return [Voice.from_dict(item) for item in body.get("data") or [] if isinstance(item, dict)]

    def synthesize(self, text: str, voice_id: str) -> SynthesisResult:
        try:
            response = self.session.post(
                f"{self.base_url}/generate",
                json={"text": text, "voice_id": voice_id},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Error generating audio: %s", exc)
            raise ProviderError(f"Failed to generate audio: {exc}") from exc

        body = self._decode(response, "Failed to generate audio")
        data = body.get("data") or {}
        try:
            audio = payload_from_fields(data)
        except ValueError as exc:
            raise ProviderError("No audio data received") from exc
        return SynthesisResult(
            audio=audio,
            duration_seconds=float(data.get("duration") or 0),
            voice_name=str(data.get("voiceName") or ""),
            audio_format=str(data.get("audioFormat") or AUDIO_FORMAT),
            message=str(data.get("message") or ""),
        )
