from __future__ import annotations

from typing import Mapping

from shadowflow.contexts.wallet_keys.application.ports import LocalKeyValueStore


class InMemoryLocalKeyValueStore(LocalKeyValueStore):
    """
    InMemoryLocalKeyValueStore — deterministic process-local key-value storage.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/ports/local_key_value_store.py
      - tests/unit/contexts/wallet_keys/adapters/test_local_key_value_key_store.py
    """

    def __init__(self, *, initial: Mapping[str, str] | None = None) -> None:
        """
        Initialize storage, optionally seeded with existing entries.

        Args:
            initial: Optional seed entries (used to model pre-existing browser storage).
        Returns:
            None.
        Assumptions:
            Store instance is isolated per test run.
        Raises:
            None.
        Side Effects:
            None.
        """
        self._rows: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._rows.get(key)

    def set(self, key: str, value: str) -> None:
        self._rows[key] = value

    def set_if_absent(self, key: str, value: str) -> str:
        return self._rows.setdefault(key, value)

    def delete(self, key: str) -> bool:
        return self._rows.pop(key, None) is not None

    def keys(self, prefix: str = "") -> tuple[str, ...]:
        return tuple(sorted(key for key in self._rows if key.startswith(prefix)))
