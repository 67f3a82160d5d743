"""Utility helpers for turning audio payloads into playable files."""

from __future__ import annotations

import hashlib
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from modules.services.records import AudioPayload, AudioReference, InlineAudio

logger = logging.getLogger(__name__)

# MPEG-1 Layer III, 128 kbps, 44.1 kHz, mono; zeroed side info decodes as silence
SILENT_FRAME_HEADER = bytes((0xFF, 0xFB, 0x90, 0xC4))
SILENT_FRAME_SIZE = 417
SILENT_FRAME_SECONDS = 1152 / 44100


class AudioMaterializer:
    """Resolve payloads to something the audio player can open."""

    def __init__(self, cache_dir: Path, assets_dir: Optional[Path] = None, suffix: str = ".mp3") -> None:
        self.cache_dir = Path(cache_dir)
        self.assets_dir = Path(assets_dir) if assets_dir is not None else None
        self.suffix = suffix

    def materialize(self, audio: AudioPayload) -> str:
        """Return a local file path (inline audio, known assets) or the URL itself."""
        if isinstance(audio, InlineAudio):
            return str(self._write_inline(audio.data))
        if isinstance(audio, AudioReference):
            return self._resolve_reference(audio.url)
        raise TypeError(f"Unsupported audio payload: {type(audio).__name__}")

    def _write_inline(self, data: bytes) -> Path:
        # 内容寻址：同一段音频只落盘一次
        digest = hashlib.sha1(data).hexdigest()
        target = self.cache_dir / f"{digest}{self.suffix}"
        if not target.exists():
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        return target

    def _resolve_reference(self, url: str) -> str:
        if self.assets_dir is None or "://" in url:
            return url
        audio_root = (self.assets_dir / "audio").resolve()
        candidate = (audio_root / url.lstrip("/")).resolve()
        if candidate.is_relative_to(audio_root) and candidate.is_file():
            return str(candidate)
        return url


def format_timestamp(created_at: float) -> str:
    """Short local date for history listings, e.g. ``Oct 19, 14:05``."""
    try:
        return datetime.fromtimestamp(created_at).strftime("%b %d, %H:%M")
    except (OverflowError, OSError, ValueError):
        return ""


def format_duration(seconds: float) -> str:
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def preview_text(text: str, limit: int = 60) -> str:
    """Collapse whitespace and cut long text for table cells."""
    flattened = " ".join(text.split())
    if len(flattened) <= limit:
        return flattened
    return flattened[: limit - 1].rstrip() + "…"


def silent_mp3(seconds: float = 1.0) -> bytes:
    """Return a playable MP3 stream of silence lasting roughly ``seconds``."""
    frames = max(1, math.ceil(seconds / SILENT_FRAME_SECONDS))
    frame = SILENT_FRAME_HEADER + bytes(SILENT_FRAME_SIZE - len(SILENT_FRAME_HEADER))
    return frame * frames


def ensure_placeholder_audio(audio_dir: Path, urls: Iterable[str], seconds: float = 1.0) -> List[Path]:
    """Write silent clips for fixture URLs whose file is missing; returns the files created."""
    audio_dir = Path(audio_dir)
    created: List[Path] = []
    for url in urls:
        target = audio_dir / Path(url).name
        if target.exists():
            continue
        audio_dir.mkdir(parents=True, exist_ok=True)
        target.write_bytes(silent_mp3(seconds))
        created.append(target)
    if created:
        logger.info("Created %d placeholder clip(s) in %s", len(created), audio_dir)
    return created
