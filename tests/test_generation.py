"""GenerationOrchestrator tests."""

from __future__ import annotations

import threading
from pathlib import Path

from modules.errors import ProviderError, ValidationError
from modules.services.generation import (
    BUSY_MESSAGE,
    MISSING_INPUT_MESSAGE,
    GenerationOrchestrator,
    GenerationState,
    new_result_id,
)
from modules.services.history_service import ResultStore
from modules.services.records import AudioReference, InlineAudio
from modules.services.storage_service import MemoryStorage
from modules.speech.synthesis import SynthesisResult
from modules.utils.audio_utils import AudioMaterializer


class StubSynthesizer:
    def __init__(self, result=None, error=None) -> None:
        self.result = result or SynthesisResult(
            audio=AudioReference("/mock-audio-2.mp3"), duration_seconds=15, voice_name="Sarah"
        )
        self.error = error
        self.calls = []
        self.observed_states = []
        self.orchestrator = None

    def synthesize(self, text, voice_id):
        self.calls.append((text, voice_id))
        if self.orchestrator is not None:
            self.observed_states.append(
                (self.orchestrator.state, self.orchestrator.is_generating)
            )
        if self.error is not None:
            raise self.error
        return self.result


def build(tmp_path: Path, synthesizer: StubSynthesizer, ids=None):
    store = ResultStore(MemoryStorage())
    materializer = AudioMaterializer(tmp_path / "audio", assets_dir=tmp_path / "assets")
    id_iter = iter(ids or [f"id-{i}" for i in range(100)])
    orchestrator = GenerationOrchestrator(
        synthesizer,
        store,
        materializer,
        clock=lambda: 1_700_000_000.0,
        id_factory=lambda: next(id_iter),
    )
    synthesizer.orchestrator = orchestrator
    return orchestrator, store


def test_generate_commits_reference_result(tmp_path):
    synthesizer = StubSynthesizer()
    orchestrator, store = build(tmp_path, synthesizer)

    outcome = orchestrator.generate("hello world", "EXAVITQu4vr4xnSDxMaL")

    assert outcome.success is True
    assert outcome.playable == "/mock-audio-2.mp3"
    assert outcome.result.id == "id-0"
    assert outcome.result.voice_name == "Sarah"
    assert outcome.result.created_at == 1_700_000_000.0
    assert store.get_last_result() == outcome.result
    assert store.list() == [outcome.result]
    assert orchestrator.state == GenerationState.IDLE
    assert orchestrator.is_generating is False
    assert synthesizer.observed_states == [(GenerationState.REQUESTING, True)]


def test_generate_materializes_inline_audio_to_file(tmp_path):
    synthesizer = StubSynthesizer(
        result=SynthesisResult(audio=InlineAudio(b"mp3-bytes"), duration_seconds=1, voice_name="Rachel")
    )
    orchestrator, _ = build(tmp_path, synthesizer)

    outcome = orchestrator.generate("hello", "v1")

    path = Path(outcome.playable)
    assert path.parent == tmp_path / "audio"
    assert path.suffix == ".mp3"
    assert path.read_bytes() == b"mp3-bytes"


def test_reference_resolves_to_local_asset(tmp_path):
    asset = tmp_path / "assets" / "audio" / "mock-audio-2.mp3"
    asset.parent.mkdir(parents=True)
    asset.write_bytes(b"sample")
    orchestrator, _ = build(tmp_path, StubSynthesizer())

    outcome = orchestrator.generate("hello", "v1")

    assert outcome.playable == str(asset.resolve())


def test_blank_input_never_calls_service(tmp_path):
    synthesizer = StubSynthesizer()
    orchestrator, store = build(tmp_path, synthesizer)

    for text, voice in (("   ", "v1"), ("hello", ""), ("", "")):
        outcome = orchestrator.generate(text, voice)
        assert outcome.success is False
        assert outcome.message == MISSING_INPUT_MESSAGE

    assert synthesizer.calls == []
    assert store.list() == []


def test_service_errors_surface_verbatim(tmp_path):
    for error in (ProviderError("vendor exploded"), ValidationError("Text must be 500 characters or less")):
        synthesizer = StubSynthesizer(error=error)
        orchestrator, store = build(tmp_path, synthesizer)

        outcome = orchestrator.generate("hello", "v1")

        assert outcome.success is False
        assert outcome.message == error.message
        assert store.list() == []
        assert orchestrator.is_generating is False


def test_second_request_while_busy_is_rejected(tmp_path):
    release = threading.Event()
    entered = threading.Event()

    class SlowSynthesizer(StubSynthesizer):
        def synthesize(self, text, voice_id):
            entered.set()
            release.wait(timeout=5)
            return super().synthesize(text, voice_id)

    synthesizer = SlowSynthesizer()
    orchestrator, store = build(tmp_path, synthesizer)
    synthesizer.orchestrator = None

    results = []
    worker = threading.Thread(target=lambda: results.append(orchestrator.generate("first", "v1")))
    worker.start()
    assert entered.wait(timeout=5)

    busy = orchestrator.generate("second", "v1")
    release.set()
    worker.join(timeout=5)

    assert busy.success is False
    assert busy.message == BUSY_MESSAGE
    assert results[0].success is True
    assert [item.source_text for item in store.list()] == ["first"]


def test_new_result_id_is_unique_with_same_clock():
    ids = {new_result_id(lambda: 1.0) for _ in range(50)}
    assert len(ids) == 50
    assert all(item.startswith("1000-") for item in ids)
