"""VoiceCatalog tests."""

from __future__ import annotations

from config.settings import AppConfig
from modules.errors import ProviderError
from modules.voices.catalog import Voice, VoiceCatalog, fixture_voices


class StaticSource:
    def __init__(self, voices=None, error=None) -> None:
        self.voices = voices or []
        self.error = error
        self.calls = 0

    def list_voices(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.voices)


def test_fixture_mode_returns_five_voices_without_calling_source():
    source = StaticSource()
    voices = VoiceCatalog(AppConfig(use_mock=True), source=source).list_voices()

    assert [voice.name for voice in voices] == ["Aria", "Sarah", "Laura", "Charlie", "George"]
    assert source.calls == 0


def test_live_mode_filters_premade_and_caps_at_five():
    remote = [Voice(voice_id=f"p{i}", name=f"P{i}", category="premade") for i in range(7)]
    remote.insert(1, Voice(voice_id="c1", name="Clone", category="cloned"))
    catalog = VoiceCatalog(AppConfig(use_mock=False), source=StaticSource(remote))

    voices = catalog.list_voices()

    assert [voice.voice_id for voice in voices] == ["p0", "p1", "p2", "p3", "p4"]


def test_live_mode_falls_back_to_fixtures_on_failure():
    catalog = VoiceCatalog(AppConfig(use_mock=False), source=StaticSource(error=ProviderError("down")))

    voices = catalog.list_voices()

    assert len(voices) == 5
    assert voices[0].voice_id == "9BWtsMINqrJLrRacOk9x"


def test_get_voice_lookup():
    catalog = VoiceCatalog(AppConfig(use_mock=True))

    assert catalog.get_voice("JBFqnCBsd6RMkjVDRZzb").name == "George"
    assert catalog.get_voice("missing") is None
    assert catalog.get_voice("") is None


def test_voice_dict_round_trip_keeps_wire_names():
    original = fixture_voices()[3]
    payload = original.to_dict()

    assert payload["voice_id"] == "IKne3meq5aSn9XLyUdCD"
    assert payload["verified_languages"][0]["locale"] == "en-AU"
    assert Voice.from_dict(payload) == original
    assert original.per_language_previews == {"en": "/mock-audio-4.mp3"}


def test_fixture_voices_are_fresh_copies():
    first = fixture_voices()
    first[0].name = "Changed"

    assert fixture_voices()[0].name == "Aria"
