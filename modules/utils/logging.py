"""Logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from config.settings import AppConfig

LOGGER_NAME = "ai_voice_studio"


def setup_logging(config: AppConfig, level: int = logging.INFO) -> logging.Logger:
    """Configure root handlers (file + console) and return the app logger."""
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_dir / "application.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    # httpx 每个请求都打 INFO，压一下
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger = logging.getLogger(LOGGER_NAME)
    logger.info("Logging to %s (mock mode: %s)", log_dir / "application.log", config.use_mock)
    mock_reason = config.metadata.get("mock_reason")
    if mock_reason:
        logger.info("Using demo audio although an ElevenLabs key is set: %s", mock_reason)
    return logger
