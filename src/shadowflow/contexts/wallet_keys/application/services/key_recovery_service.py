from __future__ import annotations

import logging

from shadowflow.contexts.wallet_keys.application.ports import KeyStore
from shadowflow.platform.errors import KeyStoreCorruptedError
from shadowflow.shared_kernel.primitives import KeyScope

from .registration_coordinator import RegistrationCoordinator

log = logging.getLogger(__name__)


class KeyRecoveryService:
    """
    Detects and clears corrupted stored keys.

    A stored entry is corrupted when at-rest decryption fails, or when it looks like
    structured JSON (`{` or `[`) but does not parse. Plain raw key strings are never
    reported as corrupted.
    """

    def __init__(self, *, key_store: KeyStore, coordinator: RegistrationCoordinator) -> None:
        if key_store is None:  # type: ignore[truthy-bool]
            raise ValueError("KeyRecoveryService requires key_store")
        if coordinator is None:  # type: ignore[truthy-bool]
            raise ValueError("KeyRecoveryService requires coordinator")
        self._key_store = key_store
        self._coordinator = coordinator

    def is_corrupted(self, scope: KeyScope) -> bool:
        try:
            key = self._coordinator.key_manager.load_key(scope)
        except KeyStoreCorruptedError:
            return True
        if key is None:
            return False
        return not key.is_well_formed()

    def find_corrupted_scopes(self) -> tuple[KeyScope, ...]:
        corrupted = tuple(scope for scope in self._key_store.scopes() if self.is_corrupted(scope))
        if corrupted:
            log.warning("found %s corrupted decryption key entries", len(corrupted))
        return corrupted

    def recover(self, scope: KeyScope) -> bool:
        """
        Clear scope key only when it is corrupted.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            bool: `True` when a corrupted entry was cleared.
        Assumptions:
            Healthy keys are never touched by recovery.
        Raises:
            KeyPersistenceFailedError: If storage delete fails.
        Side Effects:
            May delete one key entry.
        """
        if not self.is_corrupted(scope):
            return False
        log.warning("clearing corrupted decryption key for %s", scope)
        return self._coordinator.clear_key(scope)

    def recover_all(self) -> tuple[KeyScope, ...]:
        return tuple(scope for scope in self.find_corrupted_scopes() if self.recover(scope))

    def reset(self, scope: KeyScope) -> bool:
        return self._coordinator.clear_key(scope)
