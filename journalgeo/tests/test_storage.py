import json

import pytest

from journalgeo.storage import (
    JsonFileStorage,
    JsonStorageClient,
    MemoryStorage,
    QuotaExceededError,
    StorageKeys,
    is_quota_exceeded,
)


@pytest.fixture
def client():
    return JsonStorageClient(MemoryStorage(), StorageKeys.for_collection("journalEntries"), "3.0")


def test_keys_for_collection():
    keys = StorageKeys.for_collection("journalEntries")
    assert keys.main == "journalEntries"
    assert keys.backups == ("journalEntries_backup", "journalEntries_backup2")
    assert keys.version == "journalEntries_version"
    assert StorageKeys.for_collection("x", generations=3).backups == ("x_backup", "x_backup2", "x_backup3")
    with pytest.raises(ValueError):
        StorageKeys.for_collection("x", generations=0)


def test_three_writes_rotate_backups(client):
    client.write([1])
    client.write([2])
    client.write([3])

    assert json.loads(client.read_raw()) == [3]
    assert json.loads(client.get_backup("primary")) == [2]
    assert json.loads(client.get_backup("secondary")) == [1]
    assert client.get_version() == "3.0"


def test_identical_write_does_not_rotate(client):
    client.write([1])
    client.write([2])
    client.write([2])
    assert json.loads(client.get_backup("primary")) == [1]
    assert client.get_backup("secondary") is None


def test_backup_slots_by_number(client):
    client.write(["a"])
    client.write(["b"])
    assert client.get_backup(1) == client.get_backup("primary")
    with pytest.raises(ValueError):
        client.get_backup(3)
    with pytest.raises(ValueError):
        client.get_backup("tertiary")


def test_read_returns_none_for_corrupt_main(client):
    client.storage.set_item(client.keys.main, "{broken")
    assert client.read() is None
    assert client.read_raw() == "{broken"


def test_restore_without_backup_leaves_main_untouched(client):
    client.storage.set_item(client.keys.main, "{broken")
    assert client.restore_from_backup("primary") is None
    assert client.read_raw() == "{broken"


def test_restore_from_backup_writes_main_without_rotating(client):
    client.write([1])
    client.write([2])
    client.storage.set_item(client.keys.main, "{broken")

    assert client.restore_from_backup("primary") == [1]
    assert client.read() == [1]
    assert json.loads(client.get_backup("primary")) == [1]
    assert client.get_backup("secondary") is None


def test_restore_skips_corrupt_backup(client):
    client.storage.set_item(client.keys.backups[0], "not json")
    client.storage.set_item(client.keys.main, "[9]")
    assert client.restore_from_backup("primary") is None
    assert client.read() == [9]


def test_quota_exceeded_is_reported():
    client = JsonStorageClient(MemoryStorage(quota_bytes=40), StorageKeys.for_collection("media"), "1")
    result = client.write(["x" * 100])
    assert not result.success
    assert result.quota_exceeded
    assert result.bytes > 100
    assert result.failure_message.startswith("Storage quota exceeded")
    assert client.read_raw() is None


def test_unserializable_value_fails_without_quota_flag(client):
    result = client.write({"bad": object()})
    assert not result.success
    assert not result.quota_exceeded
    assert result.failure_message.startswith("Unknown storage error")


def test_successful_write_result(client):
    result = client.write({"day": 1, "title": "Arrivée"})
    assert result.success
    assert result.failure_message is None
    assert result.bytes == len(client.read_raw().encode("utf-8"))


def test_snapshot_and_clear(client):
    client.write([1])
    client.write([2])
    snapshot = client.snapshot()
    assert snapshot.main == "[2]"
    assert snapshot.backup1 == "[1]"
    assert snapshot.backup2 is None
    assert snapshot.version == "3.0"

    client.clear()
    assert client.storage.keys() == []


def test_version_helpers(client):
    client.set_version("2.0")
    assert client.get_version() == "2.0"
    client.clear_version()
    assert client.get_version() is None


def test_is_quota_exceeded():
    assert is_quota_exceeded(QuotaExceededError(28, "full"))
    assert not is_quota_exceeded(ValueError("nope"))
    assert not is_quota_exceeded(OSError(13, "denied"))


def test_json_file_storage_persists(tmp_path):
    path = tmp_path / "store" / "local.json"
    storage = JsonFileStorage(path)
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.remove_item("a")

    reopened = JsonFileStorage(path)
    assert reopened.keys() == ["b"]
    assert reopened.get_item("b") == "2"
    assert json.loads(path.read_text(encoding="utf-8")) == {"b": "2"}


def test_json_file_storage_corrupt_file_starts_fresh(tmp_path):
    path = tmp_path / "local.json"
    path.write_text("{oops", encoding="utf-8")
    storage = JsonFileStorage(path)
    assert storage.keys() == []
    storage.set_item("k", "v")
    assert JsonFileStorage(path).get_item("k") == "v"


def test_json_file_storage_quota(tmp_path):
    storage = JsonFileStorage(tmp_path / "local.json", quota_bytes=10)
    with pytest.raises(QuotaExceededError):
        storage.set_item("key", "a long value")
    assert storage.get_item("key") is None


def test_quota_counts_utf8_bytes():
    storage = MemoryStorage(quota_bytes=15)
    with pytest.raises(QuotaExceededError):
        storage.set_item("k", "é" * 10)
    storage.set_item("k", "é" * 7)
    assert storage.get_item("k") == "é" * 7


def test_write_result_bytes_match_quota_accounting():
    value = ["Château d'Ajloun"]
    payload_bytes = len(json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8"))
    keys = StorageKeys.for_collection("m")
    quota = len(keys.main) + payload_bytes + len(keys.version) + 1
    client = JsonStorageClient(MemoryStorage(quota_bytes=quota), keys, "1")
    result = client.write(value)
    assert result.success
    assert result.bytes == payload_bytes
    assert not client.write(value + ["é"]).success
