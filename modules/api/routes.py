"""FastAPI application exposing the voice catalog and speech generation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from config.settings import AppConfig
from modules.api.schemas import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    GenerationData,
    VoicesResponse,
)
from modules.errors import ProviderError, ValidationError
from modules.services.records import payload_to_fields
from modules.speech.synthesis import SpeechGenerationService
from modules.voices.catalog import VoiceCatalog

logger = logging.getLogger(__name__)


def create_api(
    config: AppConfig,
    catalog: Optional[VoiceCatalog] = None,
    speech: Optional[SpeechGenerationService] = None,
) -> FastAPI:
    """Build the API app; collaborators can be injected for tests."""
    voice_catalog = catalog or VoiceCatalog(config)
    speech_service = speech or SpeechGenerationService(config)

    audio_root = (Path(config.assets_dir) / "audio").resolve()

    api = FastAPI(title="AI Voice Studio")

    @api.exception_handler(ValidationError)
    async def _on_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        _ = request
        return JSONResponse(status_code=400, content=ErrorResponse(message=exc.message).model_dump())

    @api.exception_handler(RequestValidationError)
    async def _on_bad_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        _ = request
        logger.info("Rejected malformed request body: %s", exc.errors())
        return JSONResponse(
            status_code=400, content=ErrorResponse(message="Invalid request body").model_dump()
        )

    @api.exception_handler(ProviderError)
    async def _on_provider_error(request: Request, exc: ProviderError) -> JSONResponse:
        _ = request
        logger.error("Error generating audio: %s", exc.message)
        return JSONResponse(status_code=500, content=ErrorResponse(message=exc.message).model_dump())

    @api.get("/voices", response_model=VoicesResponse)
    def get_voices() -> VoicesResponse:
        voices = voice_catalog.list_voices()
        return VoicesResponse(data=[voice.to_dict() for voice in voices])

    @api.post(
        "/generate",
        response_model=GenerateResponse,
        response_model_exclude_none=True,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def generate(body: GenerateRequest) -> GenerateResponse:
        result = speech_service.synthesize(body.text or "", body.voice_id or "")
        return GenerateResponse(
            data=GenerationData(
                **payload_to_fields(result.audio),
                audioFormat=result.audio_format,
                duration=result.duration_seconds,
                voiceName=result.voice_name,
                message=result.message or None,
            )
        )

    @api.get("/{clip_name}.mp3", include_in_schema=False)
    def get_audio_clip(clip_name: str):
        # 示例音频的 URL 形如 /mock-audio-1.mp3，对应 assets/audio 下的文件
        target = (audio_root / f"{clip_name}.mp3").resolve()
        if not target.is_relative_to(audio_root) or not target.is_file():
            return JSONResponse(
                status_code=404, content=ErrorResponse(message="Audio file not found").model_dump()
            )
        return FileResponse(target, media_type="audio/mpeg")

    return api
