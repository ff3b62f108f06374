from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from shadowflow.contexts.wallet_keys.application.ports import LocalKeyValueStore

log = logging.getLogger(__name__)


class JsonFileLocalKeyValueStore(LocalKeyValueStore):
    """
    JsonFileLocalKeyValueStore — durable key-value storage in one JSON object file.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/ports/local_key_value_store.py
      - apps/api/wiring/modules/shadowflow.py
      - configs/dev/shadowflow.yaml
    """

    def __init__(self, *, path: str | Path) -> None:
        """
        Bind store to a JSON file path; file is created lazily on first write.

        Args:
            path: Target JSON file path.
        Returns:
            None.
        Assumptions:
            Every read re-loads the file, so writes from other processes are observed.
            Writers in any process serialize on an `flock` of the sidecar `<path>.lock`.
        Raises:
            ValueError: If path is blank.
        Side Effects:
            None.
        """
        raw_path = str(path).strip()
        if not raw_path:
            raise ValueError("JsonFileLocalKeyValueStore requires non-empty path")
        self._path = Path(raw_path)
        self._lock_path = self._path.with_name(f"{self._path.name}.lock")
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        with self._lock, self._file_lock(exclusive=False):
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock, self._file_lock(exclusive=True):
            rows = self._load()
            rows[key] = value
            self._dump(rows)

    def set_if_absent(self, key: str, value: str) -> str:
        with self._lock, self._file_lock(exclusive=True):
            rows = self._load()
            existing = rows.get(key)
            if existing is not None:
                return existing
            rows[key] = value
            self._dump(rows)
            return value

    def delete(self, key: str) -> bool:
        with self._lock, self._file_lock(exclusive=True):
            rows = self._load()
            if key not in rows:
                return False
            del rows[key]
            self._dump(rows)
            return True

    def keys(self, prefix: str = "") -> tuple[str, ...]:
        with self._lock, self._file_lock(exclusive=False):
            return tuple(sorted(key for key in self._load() if key.startswith(prefix)))

    @contextmanager
    def _file_lock(self, *, exclusive: bool) -> Iterator[None]:
        """
        Hold an OS-level lock on the sidecar lock file for one load/modify/dump cycle.

        Args:
            exclusive: `True` for writers, `False` for shared readers.
        Returns:
            Iterator[None]: Context manager body runs while the lock is held.
        Assumptions:
            The data file itself is swapped by `os.replace`, so it cannot carry the lock.
        Raises:
            OSError: If lock file cannot be created or locked.
        Side Effects:
            Creates parent directory and lock file when missing.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "a+", encoding="utf-8") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def _load(self) -> dict[str, str]:
        """
        Read current file payload.

        Args:
            None.
        Returns:
            dict[str, str]: Stored entries; empty mapping when file does not exist.
        Assumptions:
            File holds one JSON object with string values.
        Raises:
            ValueError: If file content is not a JSON object of strings.
            OSError: If file exists but cannot be read.
        Side Effects:
            Reads one UTF-8 file.
        """
        if not self._path.exists():
            return {}
        raw_text = self._path.read_text(encoding="utf-8")
        if not raw_text.strip():
            return {}
        try:
            payload = json.loads(raw_text)
        except json.JSONDecodeError as error:
            raise ValueError(f"local key-value file is not valid JSON: {self._path}") from error
        if not isinstance(payload, dict):
            raise ValueError(f"local key-value file must hold a JSON object: {self._path}")
        rows: dict[str, str] = {}
        for key, value in payload.items():
            if not isinstance(value, str):
                raise ValueError(f"local key-value entry {key!r} must be a string")
            rows[str(key)] = value
        return rows

    def _dump(self, rows: dict[str, str]) -> None:
        """
        Atomically replace file content with given entries.

        Args:
            rows: Complete entry set to persist.
        Returns:
            None.
        Assumptions:
            `os.replace` is atomic on the same filesystem.
        Raises:
            OSError: If temporary file cannot be written or moved.
        Side Effects:
            Creates parent directory when missing and rewrites the file.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        descriptor, temp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=str(self._path.parent),
        )
        try:
            with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
                json.dump(rows, handle, sort_keys=True, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, self._path)
        except OSError:
            log.exception("failed to persist local key-value file %s", self._path)
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise
