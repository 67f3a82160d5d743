"""Configuration helpers for the AI Voice Studio project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

DEFAULT_MODEL_ID = "eleven_multilingual_v2"
DEFAULT_OUTPUT_FORMAT = "mp3_44100_128"
DEFAULT_STORAGE_QUOTA = 5 * 1024 * 1024


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    assets_dir: Path = Path("assets")
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")
    elevenlabs_key: Optional[str] = None
    use_mock: bool = True
    model_id: str = DEFAULT_MODEL_ID
    output_format: str = DEFAULT_OUTPUT_FORMAT
    max_history_items: int = 10
    history_backend: str = "file"
    storage_quota_bytes: int = DEFAULT_STORAGE_QUOTA
    api_base_url: Optional[str] = None
    request_timeout: float = 60.0
    host: str = "127.0.0.1"
    port: int = 7860
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def audio_cache_dir(self) -> Path:
        """Directory holding materialized audio files."""
        return Path(self.data_dir) / "audio"


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    data_dir = Path(os.getenv("DATA_DIR", "data")).expanduser()
    assets_dir = Path(os.getenv("ASSETS_DIR", "assets")).expanduser()
    log_dir = Path(os.getenv("LOG_DIR", "logs")).expanduser()

    elevenlabs_key = os.getenv("ELEVENLABS_API_KEY") or os.getenv("NEXT_PUBLIC_ELEVENLABS_API_KEY")

    # 未显式关闭时一律走演示数据
    use_mock = _env_flag("TTS_USE_MOCK", True)

    backend = (os.getenv("HISTORY_BACKEND") or "file").strip().lower()
    if backend not in {"file", "memory"}:
        backend = "file"

    max_items = max(1, _env_int("HISTORY_MAX_ITEMS", 10))

    metadata: dict[str, Any] = {}
    if elevenlabs_key and use_mock:
        metadata["mock_reason"] = "TTS_USE_MOCK enabled"

    return AppConfig(
        assets_dir=assets_dir,
        data_dir=data_dir,
        log_dir=log_dir,
        elevenlabs_key=elevenlabs_key,
        use_mock=use_mock,
        model_id=os.getenv("ELEVENLABS_MODEL_ID") or DEFAULT_MODEL_ID,
        output_format=os.getenv("ELEVENLABS_OUTPUT_FORMAT") or DEFAULT_OUTPUT_FORMAT,
        max_history_items=max_items,
        history_backend=backend,
        api_base_url=os.getenv("VOICE_STUDIO_API_URL") or None,
        host=os.getenv("HOST", "127.0.0.1"),
        port=_env_int("PORT", 7860),
        metadata=metadata,
    )
