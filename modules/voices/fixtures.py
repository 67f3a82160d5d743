"""Built-in demo data used in fixture mode and as the catalog fallback."""

from __future__ import annotations

from typing import Any, Dict, List

MOCK_AUDIO_URLS: List[str] = [
    "/mock-audio-1.mp3",
    "/mock-audio-2.mp3",
    "/mock-audio-3.mp3",
    "/mock-audio-4.mp3",
    "/mock-audio-5.mp3",
]

FIXTURE_VOICES: List[Dict[str, Any]] = [
    {
        "voice_id": "9BWtsMINqrJLrRacOk9x",
        "name": "Aria",
        "category": "premade",
        "description": "A middle-aged female with an African-American accent. Calm with a hint of rasp.",
        "preview_url": "/mock-audio-1.mp3",
        "verified_languages": [
            {
                "language": "en",
                "model_id": "eleven_v2_flash",
                "accent": "american",
                "locale": "en-US",
                "preview_url": "/mock-audio-1.mp3",
            }
        ],
    },
    {
        "voice_id": "EXAVITQu4vr4xnSDxMaL",
        "name": "Sarah",
        "category": "premade",
        "description": (
            "Young adult woman with a confident and warm, mature quality "
            "and a reassuring, professional tone."
        ),
        "preview_url": "/mock-audio-2.mp3",
        "verified_languages": [
            {
                "language": "en",
                "model_id": "eleven_turbo_v2",
                "accent": "american",
                "locale": "en-US",
                "preview_url": "/mock-audio-2.mp3",
            }
        ],
    },
    {
        "voice_id": "FGY2WhTYpPnrIDTdsKH5",
        "name": "Laura",
        "category": "premade",
        "description": "This young adult female voice delivers sunny enthusiasm with a quirky attitude.",
        "preview_url": "/mock-audio-3.mp3",
        "verified_languages": [
            {
                "language": "en",
                "model_id": "eleven_v2_flash",
                "accent": "american",
                "locale": "en-US",
                "preview_url": "/mock-audio-3.mp3",
            }
        ],
    },
    {
        "voice_id": "IKne3meq5aSn9XLyUdCD",
        "name": "Charlie",
        "category": "premade",
        "description": "A young Australian male with a confident and energetic voice.",
        "preview_url": "/mock-audio-4.mp3",
        "verified_languages": [
            {
                "language": "en",
                "model_id": "eleven_v2_flash",
                "accent": "australian",
                "locale": "en-AU",
                "preview_url": "/mock-audio-4.mp3",
            }
        ],
    },
    {
        "voice_id": "JBFqnCBsd6RMkjVDRZzb",
        "name": "George",
        "category": "premade",
        "description": "Warm resonance that instantly captivates listeners.",
        "preview_url": "/mock-audio-5.mp3",
        "verified_languages": [
            {
                "language": "en",
                "model_id": "eleven_v2_flash",
                "accent": "british",
                "locale": "en-GB",
                "preview_url": "/mock-audio-5.mp3",
            }
        ],
    },
]

# Legacy ids kept so old history entries still resolve to a name.
_LEGACY_VOICE_NAMES: Dict[str, str] = {
    "21m00Tcm4TlvDq8ikWAM": "Rachel",
    "AZnzlk1XvdvUeBnXmlld": "Domi",
    "pNInz6obpgDQGcFmaJgB": "Bella",
}

FIXTURE_VOICE_NAMES: Dict[str, str] = {
    **_LEGACY_VOICE_NAMES,
    **{entry["voice_id"]: entry["name"] for entry in FIXTURE_VOICES},
}

UNKNOWN_VOICE_NAME = "Unknown Voice"
