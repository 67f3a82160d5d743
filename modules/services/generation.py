"""Generation orchestrator: validate, synthesize, materialize, commit."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from modules.errors import ProviderError, ValidationError
from modules.services.history_service import ResultStore
from modules.services.records import GenerationResult
from modules.speech.synthesis import SpeechSynthesizer, SynthesisResult
from modules.utils.audio_utils import AudioMaterializer

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "请输入文本并选择音色"
BUSY_MESSAGE = "已有生成任务正在进行，请稍候"


class GenerationState(str, Enum):
    """Stages a generation request moves through."""

    IDLE = "idle"
    VALIDATING = "validating"
    REQUESTING = "requesting"
    MATERIALIZING = "materializing"
    COMMITTING = "committing"


@dataclass(slots=True)
class GenerationOutcome:
    """What the presentation layer needs after a request finishes."""

    success: bool
    message: str
    result: Optional[GenerationResult] = None
    playable: Optional[str] = None


def new_result_id(clock: Callable[[], float] = time.time) -> str:
    """Millisecond timestamp plus a random suffix."""
    return f"{int(clock() * 1000)}-{uuid.uuid4().hex[:8]}"


class GenerationOrchestrator:
    """Run one generation at a time and write results through to the store."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        store: ResultStore,
        materializer: AudioMaterializer,
        clock: Callable[[], float] = time.time,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.synthesizer = synthesizer
        self.store = store
        self.materializer = materializer
        self._clock = clock
        self._id_factory = id_factory or (lambda: new_result_id(self._clock))
        self._busy = threading.Lock()
        self._state = GenerationState.IDLE

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def is_generating(self) -> bool:
        return self._busy.locked()

    def generate(self, text: str, voice_id: str) -> GenerationOutcome:
        """Synthesize ``text`` with ``voice_id`` and record the result."""
        if not self._busy.acquire(blocking=False):
            return GenerationOutcome(success=False, message=BUSY_MESSAGE)
        try:
            return self._run(text or "", voice_id or "")
        finally:
            self._state = GenerationState.IDLE
            self._busy.release()

    def materialize(self, result: GenerationResult) -> str:
        """Return a playable reference for a stored result."""
        return self.materializer.materialize(result.audio)

    def _run(self, text: str, voice_id: str) -> GenerationOutcome:
        self._state = GenerationState.VALIDATING
        if not text.strip() or not voice_id:
            return GenerationOutcome(success=False, message=MISSING_INPUT_MESSAGE)

        self._state = GenerationState.REQUESTING
        try:
            response: SynthesisResult = self.synthesizer.synthesize(text, voice_id)
        except (ValidationError, ProviderError) as exc:
            logger.warning("Generation rejected: %s", exc.message)
            return GenerationOutcome(success=False, message=exc.message)

        self._state = GenerationState.MATERIALIZING
        try:
            playable = self.materializer.materialize(response.audio)
        except (OSError, TypeError) as exc:
            logger.error("Could not prepare audio for playback: %s", exc)
            return GenerationOutcome(success=False, message=f"音频处理失败：{exc}")

        self._state = GenerationState.COMMITTING
        result = GenerationResult(
            id=self._id_factory(),
            source_text=text,
            voice_id=voice_id,
            voice_name=response.voice_name,
            audio=response.audio,
            duration_seconds=response.duration_seconds,
            created_at=self._clock(),
        )
        self.store.insert(result)
        return GenerationOutcome(
            success=True,
            message=f"生成成功（{result.voice_name}，约 {result.duration_seconds:.0f} 秒）",
            result=result,
            playable=playable,
        )
