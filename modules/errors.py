"""Error taxonomy shared by services, API and UI."""

from __future__ import annotations

from typing import Optional


class VoiceStudioError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(VoiceStudioError):
    """Bad user input; never retried."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ProviderError(VoiceStudioError):
    """Remote synthesis or catalog failure, surfaced verbatim."""


class StorageError(VoiceStudioError):
    """Persistence read/write failure; always recovered inside the result store."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key
