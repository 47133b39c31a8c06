"""Tests for the key-value store implementations."""

import os
import stat
from unittest.mock import patch

import pytest

from shared.storage import InMemoryKeyValueStore, LocalKeyValueStore


class TestInMemoryKeyValueStore:
    def test_set_get_delete(self):
        store = InMemoryKeyValueStore()

        store.set("k", b"value")
        assert store.get("k") == b"value"

        store.delete("k")
        store.delete("k")
        assert store.get("k") is None

    def test_list_filters_by_prefix_sorted(self):
        store = InMemoryKeyValueStore()
        for key in ("game_b", "game_a", "tournament_a"):
            store.set(key, b"{}")

        assert store.list("game_") == ["game_a", "game_b"]
        assert len(store.list()) == 3


class TestLocalKeyValueStore:
    def test_creates_directory_on_first_write(self, tmp_path):
        store_dir = tmp_path / "records"
        store = LocalKeyValueStore(store_dir)

        assert store.get("missing") is None
        assert store.list() == []

        store.set("frenchDomino_gameState_g1", b'{"id": "g1"}')

        assert store_dir.is_dir()
        assert store.get("frenchDomino_gameState_g1") == b'{"id": "g1"}'

    def test_overwrites_existing_record(self, tmp_path):
        store = LocalKeyValueStore(tmp_path)

        store.set("k", b"original")
        store.set("k", b"updated")

        assert store.get("k") == b"updated"

    def test_owner_only_permissions(self, tmp_path):
        store_dir = tmp_path / "records"
        store = LocalKeyValueStore(store_dir)

        store.set("k", b"data")

        assert stat.S_IMODE(store_dir.stat().st_mode) == 0o700
        [record] = list(store_dir.iterdir())
        assert stat.S_IMODE(record.stat().st_mode) == 0o600

    def test_keys_with_separators_stay_inside_directory(self, tmp_path):
        store_dir = tmp_path / "records"
        store = LocalKeyValueStore(store_dir)

        store.set("../escape", b"x")
        store.set("a/b c", b"y")

        assert not (tmp_path / "escape.json").exists()
        assert sorted(store.list()) == ["../escape", "a/b c"]
        assert store.get("a/b c") == b"y"

    def test_rejects_empty_key(self, tmp_path):
        with pytest.raises(ValueError, match="must not be empty"):
            LocalKeyValueStore(tmp_path).set("", b"x")

    def test_list_and_delete(self, tmp_path):
        store = LocalKeyValueStore(tmp_path)
        store.set("game_1", b"1")
        store.set("game_2", b"2")
        store.set("other", b"3")

        store.delete("game_1")
        store.delete("game_1")

        assert store.list("game_") == ["game_2"]

    def test_no_temp_files_left_after_write(self, tmp_path):
        store = LocalKeyValueStore(tmp_path)

        store.set("k", b"data")

        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    def test_temp_file_cleaned_up_on_write_failure(self, tmp_path):
        store = LocalKeyValueStore(tmp_path)

        with (
            patch("shared.storage.os.fsync", side_effect=OSError("disk full")),
            pytest.raises(OSError, match="disk full"),
        ):
            store.set("k", b"data")

        assert not any(name.startswith(".record_") for name in os.listdir(tmp_path))
        assert store.get("k") is None

    def test_unreadable_record_is_absent(self, tmp_path):
        store = LocalKeyValueStore(tmp_path)
        store.set("k", b"data")

        with patch("pathlib.Path.read_bytes", side_effect=PermissionError("denied")):
            assert store.get("k") is None
