from __future__ import annotations

from typing import Protocol


class KeyStoreSecretCipher(Protocol):
    """
    KeyStoreSecretCipher — at-rest encryption port for stored decryption keys.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/persistence/
        local_key_value_key_store.py
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/security/aes_gcm_key_store_cipher.py
    """

    def encrypt_secret(self, *, secret: str, aad: str) -> bytes:
        """
        Encrypt plaintext key into versioned opaque blob.

        Args:
            secret: Plaintext decryption key string.
            aad: Deterministic additional authenticated data bound to the scope.
        Returns:
            bytes: Encrypted opaque blob.
        Assumptions:
            Plaintext is never logged. `aad` is non-secret.
        Raises:
            ValueError: If inputs are invalid.
        Side Effects:
            None.
        """
        ...

    def decrypt_secret(self, *, secret_enc: bytes, aad: str) -> str:
        """
        Decrypt stored blob back into plaintext key.

        Args:
            secret_enc: Encrypted blob from local storage.
            aad: Deterministic additional authenticated data bound to the scope.
        Returns:
            str: Plaintext key string.
        Assumptions:
            Decrypted value is used transiently and never returned by the HTTP surface.
        Raises:
            ValueError: If blob is malformed or authentication fails.
        Side Effects:
            None.
        """
        ...
