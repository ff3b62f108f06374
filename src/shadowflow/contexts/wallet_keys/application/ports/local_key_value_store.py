from __future__ import annotations

from typing import Protocol


class LocalKeyValueStore(Protocol):
    """
    LocalKeyValueStore — device-local string key-value storage port.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/persistence/in_memory/
        in_memory_local_key_value_store.py
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/persistence/json_file/
        json_file_local_key_value_store.py
      - src/shadowflow/contexts/donations/application/services/campaign_image_index.py
    """

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def set_if_absent(self, key: str, value: str) -> str:
        """
        Store value only when key is absent and return the value that is stored afterwards.

        Args:
            key: Entry name.
            value: Candidate value.
        Returns:
            str: `value` when stored, otherwise the value written earlier by another writer.
        Assumptions:
            Check and write happen atomically with respect to other writers of the same store.
        Raises:
            OSError: If durable storage cannot be read or written.
            ValueError: If stored payload is unreadable.
        Side Effects:
            May write one entry.
        """
        ...

    def delete(self, key: str) -> bool:
        ...

    def keys(self, prefix: str = "") -> tuple[str, ...]:
        ...
