"""Request/response models for the HTTP API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Text to synthesize")
    voice_id: Optional[str] = Field(default=None, description="Catalog voice identifier")


class GenerationData(BaseModel):
    audioData: Optional[str] = None
    audioUrl: Optional[str] = None
    audioFormat: str = "mp3"
    duration: float
    voiceName: str
    message: Optional[str] = None


class GenerateResponse(BaseModel):
    success: bool = True
    data: GenerationData


class VoicesResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
