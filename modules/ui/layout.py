"""Gradio layout composition and application wiring."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Tuple

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.api.routes import create_api
from modules.services.api_client import VoiceStudioApiClient
from modules.services.generation import GenerationOrchestrator
from modules.services.history_service import ResultStore
from modules.services.storage_service import create_storage
from modules.speech.synthesis import MAX_TEXT_LENGTH, SpeechGenerationService
from modules.ui.callbacks import build_callbacks
from modules.utils.audio_utils import AudioMaterializer, ensure_placeholder_audio
from modules.voices.catalog import VoiceCatalog
from modules.voices.fixtures import MOCK_AUDIO_URLS

UI_PATH = "/ui"
HISTORY_HEADERS = ["时间", "音色", "文本", "时长"]


def _audio_value(value: Optional[str]) -> Optional[str]:
    """Only hand Gradio things it can actually load."""
    if not value:
        return None
    if value.startswith(("http://", "https://")) or Path(value).is_file():
        return value
    return None


def _missing_audio_note(raw: Optional[str], playable: Optional[str]) -> str:
    if raw and playable is None:
        return f"\n\n提示：音频文件不可用 {raw}"
    return ""


def build_ui(config: AppConfig, callbacks_map: dict[str, Any]) -> Any:
    """Compose and return the Gradio Blocks interface."""
    if gr is None:
        raise RuntimeError("Gradio 未安装，请先执行依赖安装。")

    voice_choices = callbacks_map["list_voice_choices"]()
    mode_note = "（演示模式：返回示例音频）" if config.use_mock else ""

    def _load() -> tuple:
        text, voice_id, audio, status, rows, choices = callbacks_map["on_load"]()
        return (
            text,
            voice_id or None,
            _audio_value(audio),
            status,
            rows,
            gr.update(choices=choices, value=None),
        )

    def _voice_changed(voice_id: str) -> tuple:
        info, preview = callbacks_map["on_voice_change"](voice_id)
        return info, _audio_value(preview)

    def _generate(text: str, voice_id: str) -> tuple:
        audio, status, rows, choices = callbacks_map["on_generate"](text, voice_id)
        playable = _audio_value(audio)
        status += _missing_audio_note(audio, playable)
        return playable, status, rows, gr.update(choices=choices, value=None)

    def _play(entry_id: str) -> tuple:
        audio, status = callbacks_map["on_play_history"](entry_id)
        playable = _audio_value(audio)
        return playable, status + _missing_audio_note(audio, playable)

    def _history_update(name: str):
        def handler(*args: Any) -> tuple:
            rows, choices, status = callbacks_map[name](*args)
            return rows, gr.update(choices=choices, value=None), status

        return handler

    with gr.Blocks(title="AI Voice Studio") as demo:
        gr.Markdown(f"## AI Voice Studio\n将文字转换为逼真的 AI 语音{mode_note}")

        with gr.Row():
            with gr.Column():
                text = gr.Textbox(
                    label="文本",
                    lines=6,
                    max_length=MAX_TEXT_LENGTH,
                    placeholder="输入想要朗读的内容",
                )
                counter = gr.Markdown(f"0 / {MAX_TEXT_LENGTH}")
                voice = gr.Dropdown(label="音色", choices=voice_choices, value=None)
                voice_info = gr.Markdown("")
                voice_preview = gr.Audio(label="音色试听", type="filepath", interactive=False)
                generate_btn = gr.Button("生成语音", variant="primary")

            with gr.Column():
                output_audio = gr.Audio(label="生成结果", type="filepath", interactive=False)
                status = gr.Markdown("准备就绪。")

        with gr.Accordion("历史记录", open=False):
            history_table = gr.Dataframe(
                headers=HISTORY_HEADERS,
                datatype=["str"] * len(HISTORY_HEADERS),
                interactive=False,
            )
            history_select = gr.Dropdown(label="选择记录", choices=[], value=None)
            with gr.Row():
                play_btn = gr.Button("播放")
                remove_btn = gr.Button("删除")
                refresh_btn = gr.Button("刷新")
                clear_btn = gr.Button("清空历史", variant="stop")
            history_audio = gr.Audio(label="历史音频", type="filepath", interactive=False)
            history_status = gr.Markdown("")

        text.change(fn=callbacks_map["on_text_change"], inputs=text, outputs=counter)
        voice.change(fn=_voice_changed, inputs=voice, outputs=[voice_info, voice_preview])

        # 生成期间禁用按钮，防止重复提交
        generate_btn.click(
            fn=lambda: gr.update(interactive=False), inputs=None, outputs=generate_btn
        ).then(
            fn=_generate,
            inputs=[text, voice],
            outputs=[output_audio, status, history_table, history_select],
        ).then(
            fn=lambda: gr.update(interactive=True), inputs=None, outputs=generate_btn
        )

        play_btn.click(fn=_play, inputs=history_select, outputs=[history_audio, history_status])
        remove_btn.click(
            fn=_history_update("on_remove_history"),
            inputs=history_select,
            outputs=[history_table, history_select, history_status],
        )
        clear_btn.click(
            fn=_history_update("on_clear_history"),
            inputs=None,
            outputs=[history_table, history_select, history_status],
        )
        refresh_btn.click(
            fn=_history_update("on_refresh_history"),
            inputs=None,
            outputs=[history_table, history_select, history_status],
        )

        demo.load(
            fn=_load,
            inputs=None,
            outputs=[text, voice, output_audio, status, history_table, history_select],
        )

    return demo


def build_services(config: AppConfig) -> Tuple[dict[str, Any], Any]:
    """Wire services together; returns the UI callbacks and the FastAPI app."""
    ensure_placeholder_audio(Path(config.assets_dir) / "audio", MOCK_AUDIO_URLS)

    storage = create_storage(
        config.history_backend, config.data_dir, quota_bytes=config.storage_quota_bytes
    )
    store = ResultStore(storage, max_items=config.max_history_items)
    materializer = AudioMaterializer(config.audio_cache_dir, assets_dir=config.assets_dir)

    catalog = VoiceCatalog(config)
    speech = SpeechGenerationService(config)
    if config.api_base_url:
        remote = VoiceStudioApiClient(config.api_base_url, timeout=config.request_timeout)
        ui_catalog: Any = remote
        synthesizer: Any = remote
    else:
        ui_catalog = catalog
        synthesizer = speech

    orchestrator = GenerationOrchestrator(synthesizer, store, materializer)
    callbacks_map = build_callbacks(config, orchestrator=orchestrator, store=store, catalog=ui_catalog)

    api = create_api(config, catalog=catalog, speech=speech)
    return callbacks_map, api


def build_app(config: AppConfig) -> Any:
    """Return the FastAPI app with the Gradio UI mounted."""
    if gr is None:
        raise RuntimeError("Gradio 未安装，请先执行依赖安装。")

    callbacks_map, api = build_services(config)
    demo = build_ui(config, callbacks_map)
    demo.queue()
    return gr.mount_gradio_app(
        api,
        demo,
        path=UI_PATH,
        allowed_paths=[str(config.data_dir), str(config.assets_dir)],
    )
