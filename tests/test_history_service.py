"""ResultStore unit tests."""

from __future__ import annotations

import json

import pytest

from modules.services.history_service import STORAGE_KEY, ResultStore
from modules.services.records import AudioReference, GenerationResult, InlineAudio
from modules.services.storage_service import JsonFileStorage, MemoryStorage, StorageResult


def make_result(result_id: str, text: str = "hello", created_at: float = 1_700_000_000.0) -> GenerationResult:
    return GenerationResult(
        id=result_id,
        source_text=text,
        voice_id="9BWtsMINqrJLrRacOk9x",
        voice_name="Aria",
        audio=AudioReference("/mock-audio-1.mp3"),
        duration_seconds=12.0,
        created_at=created_at,
    )


class FlakyStorage(MemoryStorage):
    """Memory storage that rejects the next ``failures`` writes."""

    def __init__(self, failures: int = 0) -> None:
        super().__init__()
        self.failures = failures
        self.write_sizes: list[int] = []

    def write(self, key: str, payload: str) -> StorageResult:
        self.write_sizes.append(len(json.loads(payload)["history"]))
        if self.failures > 0:
            self.failures -= 1
            return StorageResult.failure("quota exceeded", key=key)
        return super().write(key, payload)


def test_insert_sets_head_and_last_result():
    store = ResultStore(MemoryStorage())
    result = make_result("a")

    store.insert(result)

    assert store.get_last_result() == result
    assert store.list()[0] == result


def test_list_never_exceeds_capacity():
    store = ResultStore(MemoryStorage(), max_items=10)
    for index in range(25):
        store.insert(make_result(str(index)))
        assert len(store.list()) <= 10
    assert len(store.list()) == 10


def test_eviction_is_fifo_and_newest_first():
    store = ResultStore(MemoryStorage(), max_items=10)
    for index in range(11):
        store.insert(make_result(str(index)))

    assert [item.id for item in store.list()] == [str(i) for i in range(10, 0, -1)]


def test_capacity_two_scenario():
    store = ResultStore(MemoryStorage(), max_items=2)
    for result_id in ("a", "b", "c"):
        store.insert(make_result(result_id))

    assert [item.id for item in store.list()] == ["c", "b"]


def test_duplicate_id_replaces_in_front():
    store = ResultStore(MemoryStorage())
    store.insert(make_result("a"))
    store.insert(make_result("b"))
    before = len(store.list())

    replacement = make_result("a", text="updated")
    store.insert(replacement)

    entries = store.list()
    assert len(entries) == before
    assert entries[0] == replacement
    assert [item.id for item in entries] == ["a", "b"]


def test_clear_empties_log_and_last_result():
    store = ResultStore(MemoryStorage())
    store.insert(make_result("a"))

    store.clear()

    assert store.list() == []
    assert store.get_last_result() is None


def test_remove_missing_id_is_noop():
    storage = MemoryStorage()
    store = ResultStore(storage)
    store.insert(make_result("a"))
    version = storage.version(STORAGE_KEY)
    before = store.list()

    store.remove_by_id("missing")

    assert store.list() == before
    assert storage.version(STORAGE_KEY) == version


def test_remove_last_result_promotes_next_head():
    store = ResultStore(MemoryStorage())
    store.insert(make_result("a"))
    store.insert(make_result("b"))

    store.remove_by_id("b")

    assert [item.id for item in store.list()] == ["a"]
    assert store.get_last_result().id == "a"

    store.remove_by_id("a")
    assert store.get_last_result() is None


def test_remove_other_entry_keeps_last_result():
    store = ResultStore(MemoryStorage())
    store.insert(make_result("a"))
    store.insert(make_result("b"))

    store.remove_by_id("a")

    assert store.get_last_result().id == "b"


def test_state_survives_new_store_instance(tmp_path):
    storage = JsonFileStorage(tmp_path)
    first = ResultStore(storage)
    inline = GenerationResult(
        id="x",
        source_text="bytes",
        voice_id="v",
        voice_name="Voice",
        audio=InlineAudio(b"\x00\x01mp3"),
        duration_seconds=3.0,
        created_at=1_700_000_000.5,
    )
    first.insert(make_result("a"))
    first.insert(inline)

    second = ResultStore(JsonFileStorage(tmp_path))

    assert [item.id for item in second.list()] == ["x", "a"]
    assert second.get_last_result() == inline
    assert second.list()[0].audio == InlineAudio(b"\x00\x01mp3")


def test_persisted_layout_uses_single_key(tmp_path):
    store = ResultStore(JsonFileStorage(tmp_path))
    store.insert(make_result("a"))

    files = list(tmp_path.glob("*.json"))
    assert [path.name for path in files] == [f"{STORAGE_KEY}.json"]
    data = json.loads(files[0].read_text(encoding="utf-8"))
    assert set(data) == {"history", "lastGeneratedAudio", "settings"}
    assert data["settings"] == {"maxHistoryItems": 10, "autoSave": True}
    entry = data["history"][0]
    assert entry["audioUrl"] == "/mock-audio-1.mp3"
    assert "audioData" not in entry
    assert entry["timestamp"] == 1_700_000_000_000


@pytest.mark.parametrize(
    "raw",
    ["not json", "[1, 2, 3]", '{"history": "oops"}', "null"],
)
def test_corrupt_state_reads_as_empty(raw):
    storage = MemoryStorage()
    storage.write(STORAGE_KEY, raw)
    store = ResultStore(storage)

    assert store.list() == []
    assert store.get_last_result() is None


def test_malformed_entries_are_skipped():
    storage = MemoryStorage()
    good = make_result("good").to_dict()
    storage.write(
        STORAGE_KEY,
        json.dumps({"history": [{"id": "bad"}, good, "junk"], "lastGeneratedAudio": {"id": 3}}),
    )
    store = ResultStore(storage)

    assert [item.id for item in store.list()] == ["good"]
    assert store.get_last_result() is None


@pytest.mark.parametrize(
    "field_name, raw_value",
    [
        ("timestamp", "Infinity"),
        ("timestamp", "NaN"),
        ("timestamp", "1e20"),
        ("timestamp", "-5"),
        ("duration", "Infinity"),
        ("duration", "1e300"),
    ],
)
def test_entries_with_unusable_numbers_are_skipped(field_name, raw_value):
    storage = MemoryStorage()
    bad = make_result("bad").to_dict()
    bad[field_name] = "__placeholder__"
    raw_bad = json.dumps(bad).replace('"__placeholder__"', raw_value)
    good = json.dumps(make_result("good").to_dict())
    storage.write(STORAGE_KEY, f'{{"history": [{raw_bad}, {good}], "lastGeneratedAudio": {raw_bad}}}')
    store = ResultStore(storage)

    assert [item.id for item in store.list()] == ["good"]
    assert store.get_last_result() is None

    store.insert(make_result("new"))
    assert [item.id for item in store.list()] == ["new", "good"]


def test_halving_with_capacity_one_keeps_inserted_head():
    storage = FlakyStorage()
    store = ResultStore(storage, max_items=1)
    store.insert(make_result("a"))

    storage.failures = 1
    store.insert(make_result("b"))

    assert storage.write_sizes[-2:] == [1, 1]
    assert [item.id for item in store.list()] == ["b"]
    assert store.get_last_result().id == "b"


def test_unreadable_file_reads_as_empty(tmp_path):
    (tmp_path / f"{STORAGE_KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
    store = ResultStore(JsonFileStorage(tmp_path))

    assert store.list() == []


def test_write_failure_halves_log_and_retries():
    storage = FlakyStorage()
    store = ResultStore(storage, max_items=10)
    for index in range(10):
        store.insert(make_result(str(index)))

    storage.failures = 1
    store.insert(make_result("new"))

    assert storage.write_sizes[-2:] == [10, 5]
    entries = store.list()
    assert [item.id for item in entries] == ["new", "9", "8", "7", "6"]
    assert store.get_last_result().id == "new"


def test_double_write_failure_is_absorbed():
    storage = FlakyStorage()
    store = ResultStore(storage)
    store.insert(make_result("a"))

    storage.failures = 2
    store.insert(make_result("b"))

    # 写入失败后内存中的修改被丢弃，以存储为准
    assert [item.id for item in store.list()] == ["a"]
    assert store.get_last_result().id == "a"


def test_quota_rejection_from_file_storage(tmp_path):
    storage = JsonFileStorage(tmp_path, quota_bytes=10)
    store = ResultStore(storage)

    store.insert(make_result("a"))

    assert store.list() == []


def test_changed_externally_and_reload():
    storage = MemoryStorage()
    mine = ResultStore(storage)
    other = ResultStore(storage)
    mine.insert(make_result("a"))
    assert mine.changed_externally() is False

    other.insert(make_result("b"))

    assert mine.changed_externally() is True
    assert [item.id for item in mine.list()] == ["b", "a"]
    assert mine.changed_externally() is False


def test_storage_usage_reports_fixed_capacity():
    storage = MemoryStorage()
    store = ResultStore(storage)
    store.insert(make_result("a"))

    usage = store.get_storage_usage()

    assert usage.capacity_bytes == 5 * 1024 * 1024
    assert usage.used_bytes == storage.size(STORAGE_KEY) > 0
    assert usage.available_bytes == usage.capacity_bytes - usage.used_bytes
    assert usage.percent_used == pytest.approx(usage.used_bytes / usage.capacity_bytes * 100)


def test_persisted_auto_save_is_kept_and_capacity_comes_from_store():
    storage = MemoryStorage()
    storage.write(
        STORAGE_KEY,
        json.dumps({"history": [], "settings": {"maxHistoryItems": 50, "autoSave": False}}),
    )
    store = ResultStore(storage, max_items=3)

    settings = store.settings

    assert settings.auto_save is False
    assert settings.max_history_items == 3


def test_invalid_capacity_rejected():
    with pytest.raises(ValueError):
        ResultStore(MemoryStorage(), max_items=0)
