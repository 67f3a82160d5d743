"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from config.settings import AppConfig
from modules.services.generation import GenerationOrchestrator
from modules.services.history_service import ResultStore
from modules.services.records import AudioReference, GenerationResult
from modules.speech.synthesis import MAX_TEXT_LENGTH
from modules.utils.audio_utils import format_duration, format_timestamp, preview_text
from modules.utils.cache import TTLCache
from modules.voices.catalog import Voice, fixture_voices

logger = logging.getLogger(__name__)

VOICES_CACHE_KEY = "voices"

HistoryRows = List[List[str]]
HistoryChoices = List[Tuple[str, str]]


def build_callbacks(
    config: AppConfig,
    orchestrator: Optional[GenerationOrchestrator] = None,
    store: Optional[ResultStore] = None,
    catalog: Optional[Any] = None,
    voice_cache: Optional[TTLCache[str, List[Voice]]] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    cache: TTLCache[str, List[Voice]] = voice_cache or TTLCache(ttl_seconds=300.0)
    history_store = store or (orchestrator.store if orchestrator is not None else None)

    def _ensure_orchestrator() -> GenerationOrchestrator:
        if orchestrator is None:
            raise RuntimeError("语音生成服务未配置")
        return orchestrator

    def _ensure_store() -> ResultStore:
        if history_store is None:
            raise RuntimeError("历史记录存储未配置")
        return history_store

    def _fetch_voices() -> List[Voice]:
        if catalog is None:
            return fixture_voices()
        try:
            return catalog.list_voices()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Voice catalog unavailable, using fixtures: %s", exc)
            return fixture_voices()

    def _voices() -> List[Voice]:
        return cache.get_or_set(VOICES_CACHE_KEY, _fetch_voices)

    def _find_voice(voice_id: str) -> Optional[Voice]:
        for voice in _voices():
            if voice.voice_id == voice_id:
                return voice
        return None

    def _playable(result: GenerationResult) -> Optional[str]:
        try:
            return _ensure_orchestrator().materialize(result)
        except (OSError, TypeError) as exc:
            logger.error("Error preparing audio %s: %s", result.id, exc)
            return None

    def _history_view() -> tuple[HistoryRows, HistoryChoices]:
        entries = _ensure_store().list()
        rows = [
            [
                format_timestamp(item.created_at),
                item.voice_name,
                preview_text(item.source_text),
                format_duration(item.duration_seconds),
            ]
            for item in entries
        ]
        choices = [
            (f"{format_timestamp(item.created_at)} · {item.voice_name} · {preview_text(item.source_text, 30)}", item.id)
            for item in entries
        ]
        return rows, choices

    def _find_entry(entry_id: str) -> Optional[GenerationResult]:
        for item in _ensure_store().list():
            if item.id == entry_id:
                return item
        return None

    def list_voice_choices() -> List[Tuple[str, str]]:
        return [(voice.name, voice.voice_id) for voice in _voices()]

    def on_text_change(text: str) -> str:
        return f"{len(text or '')} / {MAX_TEXT_LENGTH}"

    def on_voice_change(voice_id: str) -> tuple[str, Optional[str]]:
        voice = _find_voice(voice_id or "")
        if voice is None:
            return "", None
        lines = [f"**{voice.name}** · {voice.category}"]
        if voice.description:
            lines.append(voice.description)
        languages = ", ".join(sorted(voice.per_language_previews))
        if languages:
            lines.append(f"语言：{languages}")
        preview = None
        if voice.preview_url and orchestrator is not None:
            preview = orchestrator.materializer.materialize(AudioReference(voice.preview_url))
        return "\n\n".join(lines), preview

    def on_load() -> tuple[str, str, Optional[str], str, HistoryRows, HistoryChoices]:
        rows, choices = _history_view()
        last = _ensure_store().get_last_result()
        if last is None:
            return "", "", None, "准备就绪。", rows, choices
        playable = _playable(last)
        if playable is None:
            return last.source_text, last.voice_id, None, "上次生成的音频无法加载。", rows, choices
        return last.source_text, last.voice_id, playable, "已恢复上次生成的音频。", rows, choices

    def on_generate(text: str, voice_id: str) -> tuple[Optional[str], str, HistoryRows, HistoryChoices]:
        service = _ensure_orchestrator()
        outcome = service.generate(text or "", voice_id or "")
        rows, choices = _history_view()
        if not outcome.success:
            return None, f"生成失败：{outcome.message}", rows, choices
        return outcome.playable, outcome.message, rows, choices

    def on_play_history(entry_id: str) -> tuple[Optional[str], str]:
        if not entry_id:
            return None, "请先选择一条历史记录。"
        entry = _find_entry(entry_id)
        if entry is None:
            return None, "该历史记录已不存在。"
        playable = _playable(entry)
        if playable is None:
            return None, "音频无法加载。"
        return playable, f"正在播放：{entry.voice_name} · {preview_text(entry.source_text, 30)}"

    def on_remove_history(entry_id: str) -> tuple[HistoryRows, HistoryChoices, str]:
        if entry_id:
            _ensure_store().remove_by_id(entry_id)
        rows, choices = _history_view()
        message = "已删除该记录。" if entry_id else "请先选择一条历史记录。"
        return rows, choices, message

    def on_clear_history() -> tuple[HistoryRows, HistoryChoices, str]:
        _ensure_store().clear()
        rows, choices = _history_view()
        return rows, choices, "历史记录已清空。"

    def on_refresh_history() -> tuple[HistoryRows, HistoryChoices, str]:
        history = _ensure_store()
        external = history.changed_externally()
        rows, choices = _history_view()
        usage = history.get_storage_usage()
        message = f"共 {len(rows)} 条记录，已用存储 {usage.percent_used:.1f}%"
        if external:
            message = "检测到其他会话更新了历史记录。" + message
        return rows, choices, message

    return {
        "list_voice_choices": list_voice_choices,
        "on_text_change": on_text_change,
        "on_voice_change": on_voice_change,
        "on_load": on_load,
        "on_generate": on_generate,
        "on_play_history": on_play_history,
        "on_remove_history": on_remove_history,
        "on_clear_history": on_clear_history,
        "on_refresh_history": on_refresh_history,
    }
