"""Tests for the key-value state stores.

Covers:
- Key validation (path traversal, reserved names)
- FileStateStore atomic writes, listing, deletion, locking, lock-file pruning
- CorruptStateError for values that are not valid UTF-8
- MemoryStateStore parity with the file store
- StorageUnavailableError on missing / unwritable roots
"""

import os
import threading
import time

import pytest

from smart_alerts.core.errors import CorruptStateError, InvalidArgumentError, StorageUnavailableError
from smart_alerts.core.storage import (
    LOCK_DIR_NAME,
    MAX_KEY_BYTES,
    FileStateStore,
    MemoryStateStore,
    StateStore,
    validate_key,
)


class TestValidateKey:
    @pytest.mark.parametrize("key", ["wan_down_primary.json", ".rate_limit_disk", ".smart_a_b"])
    def test_accepts_plain_names(self, key):
        assert validate_key(key) == key

    @pytest.mark.parametrize("key", ["", "   ", "a/b", "..\\x", "a\0b", ".", "..", LOCK_DIR_NAME])
    def test_rejects_unsafe_names(self, key):
        with pytest.raises(InvalidArgumentError):
            validate_key(key)

    def test_rejects_overlong_keys(self):
        assert validate_key("k" * MAX_KEY_BYTES)
        with pytest.raises(InvalidArgumentError):
            validate_key("k" * (MAX_KEY_BYTES + 1))

    def test_length_counts_utf8_bytes(self):
        with pytest.raises(InvalidArgumentError):
            validate_key("é" * (MAX_KEY_BYTES // 2 + 1))


class TestFileStateStore:
    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(FileStateStore(tmp_path), StateStore)

    def test_ensure_creates_layout_idempotently(self, tmp_path):
        store = FileStateStore(tmp_path / "a" / "b")
        store.ensure()
        store.ensure()
        assert (tmp_path / "a" / "b" / LOCK_DIR_NAME).is_dir()

    def test_read_missing_key_returns_none(self, file_store):
        assert file_store.read("nothing") is None

    def test_write_then_read(self, file_store):
        file_store.write(".rate_limit_disk", "1767225600")
        assert file_store.read(".rate_limit_disk") == "1767225600"
        assert (file_store.root / ".rate_limit_disk").read_text() == "1767225600"

    def test_write_replaces_value_and_leaves_no_temp_files(self, file_store):
        file_store.write("k", "one")
        file_store.write("k", "two")
        assert file_store.read("k") == "two"
        leftovers = [p.name for p in file_store.root.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_delete(self, file_store):
        file_store.write("k", "v")
        assert file_store.delete("k") is True
        assert file_store.delete("k") is False
        assert file_store.exists("k") is False

    def test_keys_filters_by_pattern_and_skips_directories(self, file_store):
        file_store.write("a.json", "{}")
        file_store.write("b.json", "{}")
        file_store.write(".rate_limit_x", "1")
        (file_store.root / "sub.json").mkdir()
        (file_store.root / ".a.json.123.tmp").write_text("partial")

        assert list(file_store.keys("*.json")) == ["a.json", "b.json"]

    def test_keys_is_lazy(self, file_store):
        file_store.write("a.json", "{}")
        it = file_store.keys("*.json")
        assert next(it) == "a.json"

    def test_path_traversal_rejected(self, file_store):
        with pytest.raises(InvalidArgumentError):
            file_store.write("../escape", "x")

    def test_undecodable_value_raises_corrupt_state(self, file_store):
        (file_store.root / ".smart_disk_full_sda").write_bytes(b"\xff\xfe{not utf8")
        with pytest.raises(CorruptStateError) as exc_info:
            file_store.read(".smart_disk_full_sda")
        assert exc_info.value.retryable is False
        assert exc_info.value.context.path == str(file_store.root / ".smart_disk_full_sda")
        assert isinstance(exc_info.value, StorageUnavailableError)

    def test_longest_key_can_be_written(self, file_store):
        key = "k" * MAX_KEY_BYTES
        file_store.write(key, "v")
        assert file_store.read(key) == "v"

    def test_read_with_missing_root_raises(self, tmp_path):
        store = FileStateStore(tmp_path / "missing")
        with pytest.raises(StorageUnavailableError):
            store.read("k")

    def test_write_with_missing_root_raises(self, tmp_path):
        store = FileStateStore(tmp_path / "missing")
        with pytest.raises(StorageUnavailableError) as exc_info:
            store.write("k", "v")
        assert exc_info.value.context.path == str(tmp_path / "missing")

    def test_keys_with_missing_root_raises(self, tmp_path):
        store = FileStateStore(tmp_path / "missing")
        with pytest.raises(StorageUnavailableError):
            list(store.keys())

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_ensure_unwritable_root_raises(self, tmp_path):
        root = tmp_path / "ro"
        root.mkdir()
        (root / LOCK_DIR_NAME).mkdir()
        root.chmod(0o500)
        try:
            with pytest.raises(StorageUnavailableError):
                FileStateStore(root).ensure()
        finally:
            root.chmod(0o700)

    def test_ensure_on_a_file_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(StorageUnavailableError):
            FileStateStore(blocker).ensure()

    def test_lock_serializes_threads(self, file_store):
        order: list[str] = []

        def worker(tag: str) -> None:
            with file_store.lock("shared"):
                order.append(f"{tag}-in")
                time.sleep(0.05)
                order.append(f"{tag}-out")

        threads = [threading.Thread(target=worker, args=(t,)) for t in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Each critical section completes before the other starts
        assert order[0][0] == order[1][0]
        assert order[2][0] == order[3][0]

    def test_lock_file_lives_under_lock_dir(self, file_store):
        with file_store.lock("k"):
            assert (file_store.root / LOCK_DIR_NAME / "k.lock").exists()

    def test_lock_file_pruned_when_key_has_no_value(self, file_store):
        with file_store.lock("k"):
            pass
        assert not (file_store.root / LOCK_DIR_NAME / "k.lock").exists()

    def test_lock_file_kept_while_value_exists(self, file_store):
        with file_store.lock("k"):
            file_store.write("k", "v")
        assert (file_store.root / LOCK_DIR_NAME / "k.lock").exists()

        with file_store.lock("k"):
            file_store.delete("k")
        assert not (file_store.root / LOCK_DIR_NAME / "k.lock").exists()

    def test_pruned_lock_still_serializes_threads(self, file_store):
        order: list[str] = []

        def worker(tag: str) -> None:
            with file_store.lock("shared"):
                order.append(f"{tag}-in")
                file_store.write("shared", tag)
                time.sleep(0.05)
                file_store.delete("shared")
                order.append(f"{tag}-out")

        threads = [threading.Thread(target=worker, args=(t,)) for t in ("a", "b", "c")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(order) == 6
        for i in range(0, 6, 2):
            assert order[i] == order[i + 1].replace("-out", "-in")
        assert list((file_store.root / LOCK_DIR_NAME).iterdir()) == []

    def test_different_keys_do_not_block(self, file_store):
        with file_store.lock("a"):
            with file_store.lock("b"):
                file_store.write("b", "ok")
        assert file_store.read("b") == "ok"


class TestMemoryStateStore:
    def test_satisfies_protocol(self):
        assert isinstance(MemoryStateStore(), StateStore)

    def test_round_trip_and_delete(self):
        store = MemoryStateStore()
        store.ensure()
        assert store.read("k") is None
        store.write("k", "v")
        assert store.exists("k")
        assert store.read("k") == "v"
        assert store.delete("k") is True
        assert store.delete("k") is False

    def test_keys_pattern(self):
        store = MemoryStateStore()
        for key in ("b.json", "a.json", ".smart_x_y"):
            store.write(key, "1")
        assert list(store.keys("*.json")) == ["a.json", "b.json"]
        assert list(store.keys(".smart_*")) == [".smart_x_y"]

    def test_validates_keys(self):
        with pytest.raises(InvalidArgumentError):
            MemoryStateStore().write("a/b", "x")

    def test_lock_is_exclusive(self):
        store = MemoryStateStore()
        acquired = threading.Event()

        def holder() -> None:
            with store.lock("k"):
                acquired.set()
                time.sleep(0.05)
                store.write("k", "holder")

        t = threading.Thread(target=holder)
        t.start()
        acquired.wait()
        with store.lock("k"):
            assert store.read("k") == "holder"
        t.join()
