from __future__ import annotations

import logging

from shadowflow.contexts.donations.domain import BalanceSnapshot
from shadowflow.contexts.privacy_sdk.application.ports import EncryptedAmount, SdkInitialized
from shadowflow.contexts.wallet_keys.application.services import RegistrationCoordinator
from shadowflow.platform.errors import (
    BalanceUnavailableError,
    NotRegisteredError,
    PrivacyOperationError,
    SdkNotInitializedError,
    describe_sdk_error,
)
from shadowflow.shared_kernel.primitives import KeyScope

log = logging.getLogger(__name__)


class BalanceService:
    """
    BalanceService — encrypted balance (always visible) and key-gated decrypted balance.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - src/shadowflow/contexts/donations/application/services/donation_orchestrator.py
      - apps/api/routes/balance.py
    """

    def __init__(self, *, coordinator: RegistrationCoordinator) -> None:
        """
        Initialize balance service over the registration coordinator.

        Args:
            coordinator: Source of SDK capability and readiness checks.
        Returns:
            None.
        Assumptions:
            Snapshots are process-local and keyed by scope.
        Raises:
            ValueError: If coordinator is missing.
        Side Effects:
            None.
        """
        if coordinator is None:  # type: ignore[truthy-bool]
            raise ValueError("BalanceService requires coordinator")
        self._coordinator = coordinator
        self._snapshots: dict[KeyScope, BalanceSnapshot] = {}
        self._errors: dict[KeyScope, str | None] = {}
        self._started: dict[KeyScope, int] = {}

    async def get_encrypted_balance(self, scope: KeyScope) -> EncryptedAmount:
        """
        Read ciphertext balance; independent of local key presence.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            EncryptedAmount: Ciphertext plus token decimals.
        Assumptions:
            The external primitive serves ciphertext to any registered wallet.
        Raises:
            SdkNotInitializedError: If SDK is not initialized.
            NotRegisteredError: If wallet is not registered.
            BalanceUnavailableError: If the balance read fails.
        Side Effects:
            One external read.
        """
        capability = await self._coordinator.capability(scope)
        if not isinstance(capability, SdkInitialized):
            raise SdkNotInitializedError(capability.reason)
        if not await self._coordinator.is_registered(scope):
            raise NotRegisteredError()
        try:
            return await capability.balance.encrypted_balance()
        except Exception as error:
            log.warning("encrypted balance read failed for %s: %s", scope, error)
            raise BalanceUnavailableError(
                describe_sdk_error(error, fallback="Unable to read encrypted balance.")
            ) from error

    async def get_decrypted_balance(self, scope: KeyScope) -> int | None:
        """
        Decrypt own balance, degrading to `None` instead of raising.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            int | None: Balance in base units, or `None` when unknown.
        Assumptions:
            No decryption is attempted unless a key is stored and state is `Ready`.
        Raises:
            None for readiness and decryption failures; they are recorded in `last_error`.
        Side Effects:
            Updates last error for scope.
        """
        if not self._coordinator.key_manager.has_stored_key(scope):
            self._errors[scope] = "No decryption key is stored for this wallet."
            return None
        try:
            capability = await self._coordinator.require_ready(scope)
        except PrivacyOperationError as error:
            self._errors[scope] = error.message
            return None
        try:
            balance = await capability.balance.decrypted_balance()
        except Exception as error:
            log.warning("balance decryption failed for %s: %s", scope, error)
            self._errors[scope] = describe_sdk_error(
                error,
                fallback=BalanceUnavailableError.default_message,
            )
            return None
        self._errors[scope] = None
        return int(balance)

    async def decimals(self, scope: KeyScope) -> int:
        capability = await self._coordinator.capability(scope)
        if not isinstance(capability, SdkInitialized):
            raise SdkNotInitializedError(capability.reason)
        return int(await capability.balance.decimals())

    async def refresh(self, scope: KeyScope) -> BalanceSnapshot:
        """
        Re-fetch both balance views; stale results never overwrite newer ones.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            BalanceSnapshot: Latest applied snapshot for scope after this refresh.
        Assumptions:
            Concurrent refreshes are not queued; a result is applied only when no
            later-started refresh has been applied already.
        Raises:
            None for balance failures; they are recorded in snapshot `error`.
        Side Effects:
            Updates stored snapshot and last error for scope.
        """
        sequence = self._started.get(scope, 0) + 1
        self._started[scope] = sequence

        encrypted: EncryptedAmount | None = None
        error_message: str | None = None
        try:
            encrypted = await self.get_encrypted_balance(scope)
        except PrivacyOperationError as error:
            error_message = error.message
        decrypted = await self.get_decrypted_balance(scope)
        if decrypted is None and error_message is None:
            error_message = self._errors.get(scope)

        snapshot = BalanceSnapshot(
            encrypted=encrypted,
            decrypted=decrypted,
            decimals=encrypted.decimals if encrypted is not None else None,
            error=error_message,
            sequence=sequence,
        )
        current = self._snapshots.get(scope)
        if current is None or current.sequence < sequence:
            self._snapshots[scope] = snapshot
            return snapshot
        log.debug("discarding stale balance refresh #%s for %s", sequence, scope)
        return current

    def snapshot(self, scope: KeyScope) -> BalanceSnapshot | None:
        return self._snapshots.get(scope)

    def last_error(self, scope: KeyScope) -> str | None:
        return self._errors.get(scope)

    def forget(self, scope: KeyScope) -> None:
        self._snapshots.pop(scope, None)
        self._errors.pop(scope, None)
