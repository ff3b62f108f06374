from __future__ import annotations

from typing import Protocol

from shadowflow.shared_kernel.primitives import KeyScope


class KeyStore(Protocol):
    """
    KeyStore — durable storage of exactly one decryption key string per `KeyScope`.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/persistence/
        local_key_value_key_store.py
      - src/shadowflow/contexts/wallet_keys/application/services/key_lifecycle_manager.py
      - src/shadowflow/contexts/wallet_keys/application/services/key_recovery_service.py
    """

    def get(self, scope: KeyScope) -> str | None:
        """
        Load raw stored key string for scope.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            str | None: Stored value or `None` when absent.
        Assumptions:
            No cryptographic validation of key material is performed.
        Raises:
            KeyStoreCorruptedError: If stored entry cannot be decoded.
            OSError: If durable storage cannot be read.
        Side Effects:
            Reads local storage.
        """
        ...

    def contains(self, scope: KeyScope) -> bool:
        ...

    def set(self, scope: KeyScope, value: str) -> None:
        ...

    def set_if_absent(self, scope: KeyScope, value: str) -> str:
        ...

    def delete(self, scope: KeyScope) -> bool:
        ...

    def scopes(self) -> tuple[KeyScope, ...]:
        ...
