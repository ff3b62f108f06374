from __future__ import annotations

import logging
from typing import Any, Mapping

from shadowflow.contexts.privacy_sdk.application.ports import DecryptionKeyGenerator
from shadowflow.contexts.wallet_keys.application.ports import KeyStore
from shadowflow.contexts.wallet_keys.domain import DecryptionKey
from shadowflow.platform.errors import (
    KeyGenerationFailedError,
    KeyPersistenceFailedError,
    KeyStoreCorruptedError,
    PrivacyOperationError,
    describe_sdk_error,
)
from shadowflow.shared_kernel.primitives import KeyScope

log = logging.getLogger(__name__)


class KeyLifecycleManager:
    """
    KeyLifecycleManager — generates, normalizes, loads and clears per-scope decryption keys.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/ports/key_store.py
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - tests/unit/contexts/wallet_keys/application/test_key_lifecycle_manager.py
    """

    def __init__(self, *, key_store: KeyStore) -> None:
        """
        Initialize manager with injected key store capability.

        Args:
            key_store: Durable per-scope key storage.
        Returns:
            None.
        Assumptions:
            Key store is the only persistence for key material.
        Raises:
            ValueError: If key store is missing.
        Side Effects:
            None.
        """
        if key_store is None:  # type: ignore[truthy-bool]
            raise ValueError("KeyLifecycleManager requires key_store")
        self._key_store = key_store

    def has_stored_key(self, scope: KeyScope) -> bool:
        """
        Report whether a key entry exists for scope without decoding it.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            bool: `True` when an entry exists.
        Assumptions:
            Existence check does not validate key material.
        Raises:
            KeyPersistenceFailedError: If local storage cannot be read.
        Side Effects:
            Reads local storage.
        """
        try:
            return self._key_store.contains(scope)
        except (OSError, ValueError) as error:
            raise KeyPersistenceFailedError("Failed to read local key storage.") from error

    def load_key(self, scope: KeyScope) -> DecryptionKey | None:
        """
        Load stored key for scope as-is.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            DecryptionKey | None: Stored key or `None` when absent.
        Assumptions:
            No cryptographic validation is performed.
        Raises:
            KeyStoreCorruptedError: If entry is undecodable or blank.
            KeyPersistenceFailedError: If local storage cannot be read.
        Side Effects:
            Reads local storage.
        """
        try:
            stored = self._key_store.get(scope)
        except PrivacyOperationError:
            raise
        except (OSError, ValueError) as error:
            raise KeyPersistenceFailedError("Failed to read local key storage.") from error
        if stored is None:
            return None
        if not stored.strip():
            raise KeyStoreCorruptedError()
        return DecryptionKey(value=stored)

    async def generate_and_store_key(
        self,
        *,
        scope: KeyScope,
        generator: DecryptionKeyGenerator,
    ) -> DecryptionKey:
        """
        Generate a key through the external primitive and overwrite the stored entry.

        Args:
            scope: Wallet address and operating mode.
            generator: External key-generation primitive.
        Returns:
            DecryptionKey: Newly stored key.
        Assumptions:
            Callers enforce regeneration policy before calling this method.
        Raises:
            KeyGenerationFailedError: If primitive fails or returns unusable output.
            KeyPersistenceFailedError: If storage write fails.
        Side Effects:
            Prompts external primitive and writes one local entry.
        """
        key = await self._generate(scope=scope, generator=generator)
        try:
            self._key_store.set(scope, key.value)
        except (OSError, ValueError) as error:
            log.error("failed to persist decryption key for %s: %s", scope, error)
            raise KeyPersistenceFailedError() from error
        log.info("stored new decryption key for %s", scope)
        return key

    async def store_generated_key_if_absent(
        self,
        *,
        scope: KeyScope,
        generator: DecryptionKeyGenerator,
    ) -> DecryptionKey:
        """
        Return existing key or generate one, adopting a concurrently stored key on conflict.

        Args:
            scope: Wallet address and operating mode.
            generator: External key-generation primitive.
        Returns:
            DecryptionKey: Key stored for scope after the call.
        Assumptions:
            Another session may store a key between generation and write.
        Raises:
            KeyGenerationFailedError: If primitive fails or returns unusable output.
            KeyPersistenceFailedError: If storage write fails.
            KeyStoreCorruptedError: If the existing entry is undecodable.
        Side Effects:
            May prompt external primitive and write one local entry.
        """
        existing = self.load_key(scope)
        if existing is not None:
            return existing
        generated = await self._generate(scope=scope, generator=generator)
        try:
            stored = self._key_store.set_if_absent(scope, generated.value)
        except PrivacyOperationError:
            raise
        except (OSError, ValueError) as error:
            log.error("failed to persist decryption key for %s: %s", scope, error)
            raise KeyPersistenceFailedError() from error
        return DecryptionKey(value=stored)

    def clear_key(self, scope: KeyScope) -> bool:
        """
        Delete stored key for scope.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            bool: `True` when an entry was removed.
        Assumptions:
            Clearing never touches other scopes.
        Raises:
            KeyPersistenceFailedError: If storage delete fails.
        Side Effects:
            Deletes one local entry.
        """
        try:
            removed = self._key_store.delete(scope)
        except (OSError, ValueError) as error:
            raise KeyPersistenceFailedError("Failed to clear stored decryption key.") from error
        if removed:
            log.info("cleared decryption key for %s", scope)
        return removed

    async def _generate(
        self,
        *,
        scope: KeyScope,
        generator: DecryptionKeyGenerator,
    ) -> DecryptionKey:
        try:
            raw_key: str | Mapping[str, Any] = await generator.generate_decryption_key()
        except Exception as error:
            log.warning("decryption key generation failed for %s: %s", scope, error)
            raise KeyGenerationFailedError(
                describe_sdk_error(error, fallback=KeyGenerationFailedError.default_message)
            ) from error
        if raw_key is None:
            raise KeyGenerationFailedError("Key generator returned no key.")
        try:
            return DecryptionKey.from_generated(raw_key)
        except ValueError as error:
            raise KeyGenerationFailedError(str(error)) from error
