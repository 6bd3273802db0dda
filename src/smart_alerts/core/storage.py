"""
Key-value state storage with atomic writes and per-key locks (SYNC-ONLY).

Every piece of smart-alerts state is a small value under an explicit key:
an event record, a rate-limit timestamp, a dedup fingerprint. Components
receive a ``StateStore`` at construction; nothing keeps module-level state.

Manifesto:
    Health checks run from cron, from polling loops and sometimes from two
    hosts sharing one state directory. The store therefore guarantees:

    - **Atomic writes:** A value is either fully visible or not at all
      (temp file in the same directory, fsync, ``os.replace``)
    - **Per-key serialization:** ``lock(key)`` is an exclusive advisory lock
      held across a read-modify-write, so two processes never interleave
      updates to the same key
    - **No cross-key ordering:** Keys are independent; callers that need two
      locks take them in a fixed order

Architecture:
    ::

        StateStore (Protocol)
          ├── FileStateStore    one file per key, fcntl.flock locks
          │     root/
          │       {key}               value
          │       .locks/{key}.lock   advisory lock file (pruned once the key is gone)
          └── MemoryStateStore  dict + threading locks (tests, dry runs)

Guardrails:
    ❌ DON'T: open(path, "w").write(value) - a crash leaves a torn file
    ✅ DO: store.write(key, value)

    ❌ DON'T: read, decide, write without holding ``lock(key)``
    ✅ DO: with store.lock(key): value = store.read(key); ...; store.write(key, new)

Tags:
    storage, atomic-write, file-lock, flock, smart-alerts
"""

from __future__ import annotations

import fcntl
import fnmatch
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from smart_alerts.core.errors import CorruptStateError, InvalidArgumentError, StorageUnavailableError
from smart_alerts.framework.logging import get_logger

logger = get_logger(__name__)

LOCK_DIR_NAME = ".locks"
_TEMP_SUFFIX = ".tmp"

# Leaves room for the temp-file affixes under the usual 255-byte NAME_MAX
MAX_KEY_BYTES = 200


def validate_key(key: str) -> str:
    """
    Check that a key can safely become a single file name.

    Raises:
        InvalidArgumentError: Empty key, path separators, NUL bytes, dot-only
            names or keys longer than MAX_KEY_BYTES
    """
    if not key or not key.strip():
        raise InvalidArgumentError("State key must not be empty", field_name="key")
    if "/" in key or "\\" in key or "\0" in key:
        raise InvalidArgumentError(f"State key contains a path separator: {key!r}", field_name="key")
    if key in (".", "..") or key == LOCK_DIR_NAME:
        raise InvalidArgumentError(f"Reserved state key: {key!r}", field_name="key")
    if len(key.encode("utf-8")) > MAX_KEY_BYTES:
        raise InvalidArgumentError(
            f"State key is longer than {MAX_KEY_BYTES} bytes: {key[:40]!r}...", field_name="key"
        )
    return key


@runtime_checkable
class StateStore(Protocol):
    """Minimal key-value interface used by every smart-alerts component."""

    def ensure(self) -> None:
        """Create the storage layout if missing (idempotent)."""
        ...

    def read(self, key: str) -> str | None:
        """Return the stored value, or None if the key does not exist."""
        ...

    def write(self, key: str, value: str) -> None:
        """Atomically replace the value under key."""
        ...

    def delete(self, key: str) -> bool:
        """Remove key; True if something was removed."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def keys(self, pattern: str = "*") -> Iterator[str]:
        """Lazily yield keys matching a glob pattern."""
        ...

    def lock(self, key: str):
        """Context manager holding the exclusive lock for key."""
        ...


class FileStateStore:
    """
    Directory-backed store: one file per key.

    Example:
        >>> store = FileStateStore(Path("/var/lib/smart-alerts"))
        >>> store.ensure()
        >>> with store.lock(".rate_limit_disk_full"):
        ...     last = store.read(".rate_limit_disk_full")
        ...     store.write(".rate_limit_disk_full", "1767225600")
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._lock_dir = self.root / LOCK_DIR_NAME

    def __repr__(self) -> str:
        return f"FileStateStore({str(self.root)!r})"

    def path_for(self, key: str) -> Path:
        return self.root / validate_key(key)

    # ── Layout ───────────────────────────────────────────────────

    def ensure(self) -> None:
        try:
            self._lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create state directory {self.root}: {e.strerror or e}", cause=e
            ).with_context(path=str(self.root)) from e
        if not os.access(self.root, os.W_OK | os.X_OK):
            raise StorageUnavailableError(f"State directory is not writable: {self.root}").with_context(
                path=str(self.root)
            )

    def _require_root(self) -> None:
        if not self.root.is_dir():
            raise StorageUnavailableError(f"State directory does not exist: {self.root}").with_context(
                path=str(self.root)
            )

    # ── Values ───────────────────────────────────────────────────

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._require_root()
            return None
        except UnicodeDecodeError as e:
            raise CorruptStateError(f"Cannot decode {path}: {e.reason}", cause=e).with_context(path=str(path)) from e
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {path}: {e.strerror or e}", cause=e).with_context(
                path=str(path)
            ) from e

    def write(self, key: str, value: str) -> None:
        path = self.path_for(key)
        self._require_root()
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=_TEMP_SUFFIX)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write {path}: {e.strerror or e}", cause=e).with_context(
                path=str(path)
            ) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("temp_file_cleanup_failed", path=tmp_name)

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageUnavailableError(f"Cannot delete {path}: {e.strerror or e}", cause=e).with_context(
                path=str(path)
            ) from e

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def keys(self, pattern: str = "*") -> Iterator[str]:
        self._require_root()
        try:
            entries = sorted(self.root.glob(pattern))
        except OSError as e:
            raise StorageUnavailableError(f"Cannot list {self.root}: {e.strerror or e}", cause=e) from e
        for entry in entries:
            if entry.name.endswith(_TEMP_SUFFIX) or not entry.is_file():
                continue
            yield entry.name

    # ── Locks ────────────────────────────────────────────────────

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """
        Exclusive advisory lock for key, blocking until acquired.

        flock locks belong to the open file description, so they serialize
        both separate processes and separate threads of one process.
        Not reentrant: taking the same key twice in one thread deadlocks.

        The lock file is removed on release when no value is stored under
        key, so deleted events do not leave lock files behind.
        """
        lock_path = self._lock_dir / f"{validate_key(key)}.lock"
        lock_file = self._acquire(lock_path)
        try:
            yield
        finally:
            try:
                if not self.path_for(key).exists():
                    lock_path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug("lock_prune_failed", path=str(lock_path), error=str(e))
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
                lock_file.close()

    def _acquire(self, lock_path: Path):
        """
        Open and flock lock_path, retrying if it was pruned while we waited.

        A holder may unlink the lock file before releasing it; a waiter that
        then wins the flock holds a lock on an orphaned inode. Comparing the
        locked descriptor against the path detects that.
        """
        while True:
            try:
                self._lock_dir.mkdir(parents=True, exist_ok=True)
                lock_file = open(lock_path, "a+")
            except OSError as e:
                raise StorageUnavailableError(
                    f"Cannot open lock {lock_path}: {e.strerror or e}", cause=e
                ).with_context(path=str(lock_path)) from e
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                held = os.fstat(lock_file.fileno())
                try:
                    current = os.stat(lock_path)
                except FileNotFoundError:
                    current = None
            except OSError as e:
                lock_file.close()
                raise StorageUnavailableError(
                    f"Cannot lock {lock_path}: {e.strerror or e}", cause=e
                ).with_context(path=str(lock_path)) from e
            if current is not None and (current.st_dev, current.st_ino) == (held.st_dev, held.st_ino):
                return lock_file
            lock_file.close()


class MemoryStateStore:
    """In-process store with the same contract, for tests and dry runs."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def ensure(self) -> None:
        return None

    def read(self, key: str) -> str | None:
        return self._values.get(validate_key(key))

    def write(self, key: str, value: str) -> None:
        self._values[validate_key(key)] = value

    def delete(self, key: str) -> bool:
        return self._values.pop(validate_key(key), None) is not None

    def exists(self, key: str) -> bool:
        return validate_key(key) in self._values

    def keys(self, pattern: str = "*") -> Iterator[str]:
        for key in sorted(self._values):
            if fnmatch.fnmatchcase(key, pattern):
                yield key

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        with self._guard:
            key_lock = self._locks.setdefault(validate_key(key), threading.Lock())
        with key_lock:
            yield


__all__ = [
    "StateStore",
    "FileStateStore",
    "MemoryStateStore",
    "validate_key",
    "LOCK_DIR_NAME",
    "MAX_KEY_BYTES",
]
