"""One-off script for debugging speech generation end to end."""

from config.settings import load_config
from modules.services.generation import GenerationOrchestrator
from modules.services.history_service import ResultStore
from modules.services.storage_service import create_storage
from modules.speech.synthesis import SpeechGenerationService
from modules.ui.callbacks import build_callbacks
from modules.utils.audio_utils import AudioMaterializer
from modules.utils.logging import setup_logging
from modules.voices.catalog import VoiceCatalog


def main() -> None:
    # 1. 准备真实配置与服务对象
    config = load_config()
    setup_logging(config)

    storage = create_storage(config.history_backend, config.data_dir, config.storage_quota_bytes)
    store = ResultStore(storage, max_items=config.max_history_items)
    orchestrator = GenerationOrchestrator(
        SpeechGenerationService(config),
        store,
        AudioMaterializer(config.audio_cache_dir, assets_dir=config.assets_dir),
    )

    callbacks = build_callbacks(
        config,
        orchestrator=orchestrator,
        store=store,
        catalog=VoiceCatalog(config),
    )

    # 2. 取第一个音色；TTS_USE_MOCK=false 时会真正调用 ElevenLabs
    voices = callbacks["list_voice_choices"]()
    print("可用音色:", ", ".join(name for name, _ in voices))
    _, voice_id = voices[0]

    # 3. 调用生成回调
    audio, status, rows, _ = callbacks["on_generate"](
        "Hello from AI Voice Studio. This is a quick synthesis check.",
        voice_id,
    )

    print("状态:", status)
    print("音频:", audio)
    print("历史记录条数:", len(rows))
    usage = store.get_storage_usage()
    print(f"存储占用: {usage.used_bytes} / {usage.capacity_bytes} bytes ({usage.percent_used:.2f}%)")


if __name__ == "__main__":
    main()
