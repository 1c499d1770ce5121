from __future__ import annotations

import pytest

from data.store import KeyValueStore, StoreError, format_bytes


def test_values_are_copied(store):
    data = {"a": [1, 2]}
    store.set("k", data)
    data["a"].append(3)
    got = store.get("k")
    got["a"].append(4)
    assert store.get("k") == {"a": [1, 2]}


def test_missing_key_default(store):
    assert store.get("nope") is None
    assert store.get("nope", []) == []
    assert not store.has("nope")


def test_file_persistence(tmp_path):
    path = tmp_path / "sub" / "store.json"
    s = KeyValueStore(path)
    s.set("greeting", "Grüß Gott")
    s.set("n", 3)
    s.delete("n")

    reopened = KeyValueStore(path)
    assert reopened.get("greeting") == "Grüß Gott"
    assert reopened.keys() == ["greeting"]


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(StoreError):
        KeyValueStore(path)


def test_usage_formula(store):
    store.set("ab", [1])
    # (len("ab") + len("[1]")) * 2
    assert store.usage_bytes() == 10
    assert store.available_bytes == store.quota_bytes - 10


def test_quota_rejects_write_and_keeps_old_value():
    s = KeyValueStore(None, quota_bytes=100)
    s.set("k", "x")
    with pytest.raises(StoreError):
        s.set("k", "y" * 200)
    assert s.get("k") == "x"


def test_clear(store):
    store.set("a", 1)
    store.clear()
    assert store.keys() == []
    assert store.usage_bytes() == 0


@pytest.mark.parametrize("n,label", [(512, "512 Bytes"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.00 MB")])
def test_format_bytes(n, label):
    assert format_bytes(n) == label
