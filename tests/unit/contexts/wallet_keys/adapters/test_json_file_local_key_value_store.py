from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from shadowflow.contexts.wallet_keys.adapters.outbound import JsonFileLocalKeyValueStore


def test_json_file_store_persists_entries_across_instances(tmp_path: Path) -> None:
    """
    Verify entries survive process restarts modeled by a second store instance.

    Args:
        tmp_path: pytest temporary directory.
    Returns:
        None.
    Assumptions:
        Parent directory is created lazily on first access.
    Raises:
        AssertionError: If persistence or file shape changes.
    Side Effects:
        Writes one JSON file under tmp_path.
    """
    path = tmp_path / "nested" / "keystore.json"
    first = JsonFileLocalKeyValueStore(path=path)

    assert first.get("key:standalone:0xabc") is None
    assert first.keys() == ()

    first.set("key:standalone:0xabc", "k1")
    first.set("campaign-image:0xdef", '{"imageHash":"Qm1","timestamp":1}')

    second = JsonFileLocalKeyValueStore(path=path)
    assert second.get("key:standalone:0xabc") == "k1"
    assert second.keys("key:") == ("key:standalone:0xabc",)
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "campaign-image:0xdef": '{"imageHash":"Qm1","timestamp":1}',
        "key:standalone:0xabc": "k1",
    }
    assert list(tmp_path.joinpath("nested").glob("*.tmp")) == []


def test_json_file_store_set_if_absent_and_delete(tmp_path: Path) -> None:
    store = JsonFileLocalKeyValueStore(path=tmp_path / "keystore.json")

    assert store.set_if_absent("k", "first") == "first"
    assert store.set_if_absent("k", "second") == "first"
    assert store.delete("k") is True
    assert store.delete("k") is False
    assert store.get("k") is None


def test_json_file_store_instances_sharing_a_file_never_drop_entries(tmp_path: Path) -> None:
    """
    Verify two stores bound to one file keep every key written concurrently by either.

    Args:
        tmp_path: Pytest temporary directory.
    Returns:
        None.
    Assumptions:
        Separate instances stand in for separate worker processes sharing the keystore.
    Raises:
        AssertionError: If one writer overwrites entries of the other.
    Side Effects:
        Writes one JSON file and its lock file under `tmp_path`.
    """
    path = tmp_path / "keystore.json"
    stores = [JsonFileLocalKeyValueStore(path=path), JsonFileLocalKeyValueStore(path=path)]

    def write_many(store: JsonFileLocalKeyValueStore, wallet_digit: str) -> None:
        for index in range(100):
            address = "0x" + wallet_digit * 36 + f"{index:04x}"
            store.set(f"key:standalone:{address}", f"secret-{wallet_digit}-{index}")

    writers = [
        threading.Thread(target=write_many, args=(stores[0], "a")),
        threading.Thread(target=write_many, args=(stores[1], "b")),
    ]
    for writer in writers:
        writer.start()
    for writer in writers:
        writer.join()

    reader = JsonFileLocalKeyValueStore(path=path)
    assert len(reader.keys("key:standalone:")) == 200
    assert reader.get("key:standalone:0x" + "a" * 36 + "0063") == "secret-a-99"
    assert reader.get("key:standalone:0x" + "b" * 36 + "0000") == "secret-b-0"


def test_json_file_store_rejects_malformed_file(tmp_path: Path) -> None:
    """
    Verify malformed storage is reported instead of being silently overwritten.

    Args:
        tmp_path: pytest temporary directory.
    Returns:
        None.
    Assumptions:
        Values must be strings inside one JSON object.
    Raises:
        AssertionError: If malformed content is accepted.
    Side Effects:
        Writes temporary files.
    """
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    wrong_shape = tmp_path / "list.json"
    wrong_shape.write_text("[1, 2]", encoding="utf-8")
    wrong_value = tmp_path / "value.json"
    wrong_value.write_text('{"k": 1}', encoding="utf-8")

    with pytest.raises(ValueError, match="not valid JSON"):
        JsonFileLocalKeyValueStore(path=broken).get("k")
    with pytest.raises(ValueError, match="JSON object"):
        JsonFileLocalKeyValueStore(path=wrong_shape).get("k")
    with pytest.raises(ValueError, match="must be a string"):
        JsonFileLocalKeyValueStore(path=wrong_value).set("other", "v")
    assert broken.read_text(encoding="utf-8") == "{not json"


def test_json_file_store_requires_path() -> None:
    with pytest.raises(ValueError):
        JsonFileLocalKeyValueStore(path="  ")
