from __future__ import annotations

import base64
import binascii
import logging

from shadowflow.contexts.wallet_keys.adapters.outbound.security.aes_gcm_key_store_cipher import (
    build_key_store_aad,
)
from shadowflow.contexts.wallet_keys.application.ports import (
    KeyStore,
    KeyStoreSecretCipher,
    LocalKeyValueStore,
)
from shadowflow.platform.errors import KeyStoreCorruptedError
from shadowflow.shared_kernel.primitives import KeyScope

log = logging.getLogger(__name__)

KEY_ENTRY_PREFIX = "key:"
ENCRYPTED_VALUE_PREFIX = "aesgcm.v1:"


class LocalKeyValueKeyStore(KeyStore):
    """
    LocalKeyValueKeyStore — `KeyStore` over local key-value entries `key:{mode}:{address}`.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/ports/key_store.py
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/security/aes_gcm_key_store_cipher.py
      - apps/api/wiring/modules/shadowflow.py
    """

    def __init__(
        self,
        *,
        storage: LocalKeyValueStore,
        cipher: KeyStoreSecretCipher | None = None,
    ) -> None:
        """
        Initialize key store over generic storage with optional at-rest cipher.

        Args:
            storage: Local key-value storage port.
            cipher: Optional cipher; when set, new entries are written encrypted.
        Returns:
            None.
        Assumptions:
            Plain entries written without a cipher remain readable after a cipher is enabled.
        Raises:
            ValueError: If storage is missing.
        Side Effects:
            None.
        """
        if storage is None:  # type: ignore[truthy-bool]
            raise ValueError("LocalKeyValueKeyStore requires storage")
        self._storage = storage
        self._cipher = cipher

    def get(self, scope: KeyScope) -> str | None:
        stored = self._storage.get(scope.storage_key())
        if stored is None:
            return None
        return self._decode(scope=scope, stored=stored)

    def contains(self, scope: KeyScope) -> bool:
        return self._storage.get(scope.storage_key()) is not None

    def set(self, scope: KeyScope, value: str) -> None:
        self._storage.set(scope.storage_key(), self._encode(scope=scope, value=value))

    def set_if_absent(self, scope: KeyScope, value: str) -> str:
        """
        Store key unless another writer stored one first; return the winning key.

        Args:
            scope: Wallet address and operating mode.
            value: Candidate plaintext key.
        Returns:
            str: Plaintext key that is stored after the call.
        Assumptions:
            Storage `set_if_absent` is atomic for one entry.
        Raises:
            KeyStoreCorruptedError: If the existing winner cannot be decoded.
        Side Effects:
            May write one entry.
        """
        encoded = self._encode(scope=scope, value=value)
        stored = self._storage.set_if_absent(scope.storage_key(), encoded)
        if stored == encoded:
            return value
        log.info("adopted concurrently stored decryption key for %s", scope)
        return self._decode(scope=scope, stored=stored)

    def delete(self, scope: KeyScope) -> bool:
        return self._storage.delete(scope.storage_key())

    def scopes(self) -> tuple[KeyScope, ...]:
        """
        List scopes that currently hold a key entry.

        Args:
            None.
        Returns:
            tuple[KeyScope, ...]: Scopes ordered by storage key.
        Assumptions:
            Entries with unparsable names are foreign data and are skipped.
        Raises:
            None.
        Side Effects:
            Reads local storage.
        """
        found: list[KeyScope] = []
        for entry_name in self._storage.keys(KEY_ENTRY_PREFIX):
            parts = entry_name.split(":")
            if len(parts) != 3:
                continue
            try:
                found.append(KeyScope.of(parts[2], parts[1]))
            except ValueError:
                log.warning("skipping unrecognized key entry %r", entry_name)
        return tuple(found)

    def _encode(self, *, scope: KeyScope, value: str) -> str:
        if self._cipher is None:
            return value
        blob = self._cipher.encrypt_secret(secret=value, aad=_aad_for(scope))
        return ENCRYPTED_VALUE_PREFIX + base64.b64encode(blob).decode("ascii")

    def _decode(self, *, scope: KeyScope, stored: str) -> str:
        """
        Turn stored entry into plaintext key.

        Args:
            scope: Scope the entry belongs to.
            stored: Raw storage value.
        Returns:
            str: Plaintext key.
        Assumptions:
            Only values with `aesgcm.v1:` prefix are encrypted.
        Raises:
            KeyStoreCorruptedError: If entry is encrypted but cannot be decrypted.
        Side Effects:
            None.
        """
        if not stored.startswith(ENCRYPTED_VALUE_PREFIX):
            return stored
        if self._cipher is None:
            raise KeyStoreCorruptedError(
                f"Stored key for {scope.address.short()} is encrypted but no key-encryption key "
                "is configured."
            )
        try:
            blob = base64.b64decode(stored[len(ENCRYPTED_VALUE_PREFIX) :], validate=True)
            return self._cipher.decrypt_secret(secret_enc=blob, aad=_aad_for(scope))
        except (binascii.Error, ValueError) as error:
            log.warning("stored decryption key for %s failed at-rest decryption", scope)
            raise KeyStoreCorruptedError() from error


def _aad_for(scope: KeyScope) -> str:
    return build_key_store_aad(mode=scope.mode.value, address=scope.address.value)
