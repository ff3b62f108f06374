from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from shadowflow.contexts.privacy_sdk.application.ports import (
    PrivacySdkGateway,
    SdkCapability,
    SdkInitialized,
)
from shadowflow.contexts.wallet_keys.domain import (
    DecryptionKey,
    RegistrationState,
    derive_registration_state,
)
from shadowflow.platform.errors import (
    KeyMissingError,
    KeyRegenerationForbiddenError,
    NotRegisteredError,
    OperationInProgressError,
    RegistrationFailedError,
    SdkNotInitializedError,
    describe_sdk_error,
)
from shadowflow.shared_kernel.primitives import KeyScope

from .key_lifecycle_manager import KeyLifecycleManager

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistrationReceipt:
    """
    Result of a registration request.

    `transaction_hash` is `None` when the wallet was already registered and nothing was
    submitted. `key` must never be serialized by the HTTP surface.
    """

    key: DecryptionKey
    transaction_hash: str | None

    @property
    def already_registered(self) -> bool:
        return self.transaction_hash is None


@dataclass(frozen=True, slots=True)
class RegistrationCoordinatorHooks:
    """
    Optional lifecycle callbacks for registration submissions.

    Parameters:
    - on_registration_submitted: callback with scope after a registration transaction.
    - on_registration_failed: callback with scope after a failed submission.

    Assumptions/Invariants:
    - Callbacks are lightweight and non-blocking.
    """

    on_registration_submitted: Callable[[KeyScope], None] | None = None
    on_registration_failed: Callable[[KeyScope], None] | None = None


class RegistrationCoordinator:
    """
    RegistrationCoordinator — drives a key scope from `Uninitialized` to `Ready`.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/domain/registration_state.py
      - src/shadowflow/contexts/wallet_keys/application/services/key_lifecycle_manager.py
      - src/shadowflow/contexts/donations/application/services/donation_orchestrator.py
      - apps/api/routes/wallet.py
    """

    def __init__(
        self,
        *,
        gateway: PrivacySdkGateway,
        key_manager: KeyLifecycleManager,
        ready_attempts: int = 30,
        ready_interval_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        hooks: RegistrationCoordinatorHooks | None = None,
    ) -> None:
        """
        Initialize coordinator with SDK gateway and key lifecycle collaborators.

        Args:
            gateway: Privacy SDK capability resolver.
            key_manager: Key lifecycle manager over the key store.
            ready_attempts: Max capability resolution attempts in `initialize`.
            ready_interval_seconds: Delay between resolution attempts.
            sleep: Optional async sleep override for tests.
            hooks: Optional metrics callbacks.
        Returns:
            None.
        Assumptions:
            One coordinator instance serves every scope of the process.
        Raises:
            ValueError: If collaborators are missing or polling settings are invalid.
        Side Effects:
            None.
        """
        if gateway is None:  # type: ignore[truthy-bool]
            raise ValueError("RegistrationCoordinator requires gateway")
        if key_manager is None:  # type: ignore[truthy-bool]
            raise ValueError("RegistrationCoordinator requires key_manager")
        if ready_attempts <= 0:
            raise ValueError("ready_attempts must be > 0")
        if ready_interval_seconds < 0:
            raise ValueError("ready_interval_seconds must be >= 0")

        self._gateway = gateway
        self._key_manager = key_manager
        self._ready_attempts = ready_attempts
        self._ready_interval_seconds = ready_interval_seconds
        self._sleep = sleep if sleep is not None else asyncio.sleep
        self._hooks = hooks if hooks is not None else RegistrationCoordinatorHooks()
        self._capabilities: dict[KeyScope, tuple[str | None, SdkInitialized]] = {}
        self._registration_tasks: dict[KeyScope, asyncio.Task[RegistrationReceipt]] = {}

    @property
    def key_manager(self) -> KeyLifecycleManager:
        return self._key_manager

    async def initialize(self, scope: KeyScope) -> RegistrationState:
        """
        Resolve SDK capability with polling and return derived state.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            RegistrationState: State after the last resolution attempt.
        Assumptions:
            SDK readiness may lag wallet connection (circuits loading, wallet client setup).
        Raises:
            KeyStoreCorruptedError: If stored key entry is undecodable.
        Side Effects:
            Resolves SDK capability up to `ready_attempts` times.
        """
        for attempt in range(1, self._ready_attempts + 1):
            capability = await self._capability(scope)
            if isinstance(capability, SdkInitialized):
                break
            if attempt < self._ready_attempts:
                log.debug(
                    "privacy SDK not ready for %s (attempt %s/%s): %s",
                    scope,
                    attempt,
                    self._ready_attempts,
                    capability.reason,
                )
                await self._sleep(self._ready_interval_seconds)
        else:
            log.warning("privacy SDK did not become ready for %s", scope)
        return await self.state(scope)

    async def state(self, scope: KeyScope) -> RegistrationState:
        """
        Derive current registration state from live inputs.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            RegistrationState: Derived state; never cached.
        Assumptions:
            Registration status is read from the external registrar on every call.
        Raises:
            SdkNotInitializedError: If the registrar status query fails.
            KeyStoreCorruptedError: If stored key entry is undecodable.
        Side Effects:
            May resolve SDK capability.
        """
        capability = await self._capability(scope)
        initialized = isinstance(capability, SdkInitialized)
        registered = await self._query_registered(scope, capability) if initialized else False
        return derive_registration_state(
            sdk_initialized=initialized,
            key_present=self._key_manager.has_stored_key(scope),
            registered=registered,
            registration_in_flight=self.is_registration_in_flight(scope),
        )

    async def is_initialized(self, scope: KeyScope) -> bool:
        return isinstance(await self._capability(scope), SdkInitialized)

    async def is_registered(self, scope: KeyScope) -> bool:
        capability = await self._capability(scope)
        if not isinstance(capability, SdkInitialized):
            return False
        return await self._query_registered(scope, capability)

    def is_registration_in_flight(self, scope: KeyScope) -> bool:
        task = self._registration_tasks.get(scope)
        return task is not None and not task.done()

    async def generate_key(self, scope: KeyScope, *, allow_rotation: bool = False) -> DecryptionKey:
        """
        Generate and store a decryption key for scope.

        Args:
            scope: Wallet address and operating mode.
            allow_rotation: Permit overwriting a key of an already registered wallet.
        Returns:
            DecryptionKey: Newly stored key.
        Assumptions:
            Overwriting the key of a registered wallet makes existing balances undecryptable,
            so it needs explicit `allow_rotation`.
        Raises:
            SdkNotInitializedError: If SDK is not initialized.
            OperationInProgressError: If registration for scope is in flight.
            KeyRegenerationForbiddenError: If wallet is registered and a key is stored.
            KeyGenerationFailedError: If external primitive fails.
            KeyPersistenceFailedError: If storage write fails.
        Side Effects:
            Writes one key entry and drops cached capability for scope.
        """
        capability = await self._require_initialized(scope)
        if self.is_registration_in_flight(scope):
            raise OperationInProgressError("Registration is in progress for this wallet.")
        if (
            not allow_rotation
            and self._key_manager.has_stored_key(scope)
            and await self._query_registered(scope, capability)
        ):
            raise KeyRegenerationForbiddenError()

        key = await self._key_manager.generate_and_store_key(
            scope=scope,
            generator=capability.registration,
        )
        self._invalidate(scope)
        return key

    async def register(self, scope: KeyScope) -> RegistrationReceipt:
        """
        Submit registration using the stored key; concurrent calls share one submission.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            RegistrationReceipt: Key plus transaction hash (`None` when already registered).
        Assumptions:
            State stays `KeyPresentUnregistered` on failure, so the call can be retried.
        Raises:
            SdkNotInitializedError: If SDK is not initialized.
            KeyMissingError: If no key is stored.
            RegistrationFailedError: If external registration fails.
        Side Effects:
            Submits at most one registration transaction per in-flight window.
        """
        return await self._coalesced_registration(scope, generate_missing=False)

    async def register_with_key(self, scope: KeyScope) -> RegistrationReceipt:
        """
        Generate key when absent, then register; concurrent calls share one submission.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            RegistrationReceipt: Key plus transaction hash (`None` when already registered).
        Assumptions:
            A key stored concurrently by another session is adopted, never overwritten.
        Raises:
            SdkNotInitializedError: If SDK is not initialized.
            KeyGenerationFailedError: If key generation fails.
            KeyPersistenceFailedError: If storage write fails.
            RegistrationFailedError: If external registration fails.
        Side Effects:
            May write one key entry and submit one registration transaction.
        """
        return await self._coalesced_registration(scope, generate_missing=True)

    async def require_ready(self, scope: KeyScope) -> SdkInitialized:
        """
        Return initialized capability only when state is `Ready`.

        Args:
            scope: Wallet address and operating mode.
        Returns:
            SdkInitialized: Capability resolved with the stored key.
        Assumptions:
            Used by orchestrators before any encrypted operation.
        Raises:
            SdkNotInitializedError: If SDK is not initialized.
            KeyMissingError: If no key is stored.
            NotRegisteredError: If wallet is not registered or registration is in flight.
        Side Effects:
            May resolve SDK capability.
        """
        capability = await self._require_initialized(scope)
        if not self._key_manager.has_stored_key(scope):
            raise KeyMissingError()
        if self.is_registration_in_flight(scope):
            raise NotRegisteredError("Registration is still in progress.")
        if not await self._query_registered(scope, capability):
            raise NotRegisteredError()
        if not capability.has_key:
            self._invalidate(scope)
            capability = await self._require_initialized(scope)
        return capability

    def clear_key(self, scope: KeyScope) -> bool:
        """
        Clear stored key and cached capability for scope (recovery flow).

        Args:
            scope: Wallet address and operating mode.
        Returns:
            bool: `True` when a key entry was removed.
        Assumptions:
            Next state read recomputes from scratch.
        Raises:
            KeyPersistenceFailedError: If storage delete fails.
        Side Effects:
            Deletes one key entry and drops cached capability.
        """
        removed = self._key_manager.clear_key(scope)
        self._invalidate(scope)
        return removed

    async def capability(self, scope: KeyScope) -> SdkCapability:
        return await self._capability(scope)

    async def _coalesced_registration(
        self,
        scope: KeyScope,
        *,
        generate_missing: bool,
    ) -> RegistrationReceipt:
        task = self._registration_tasks.get(scope)
        if task is None or task.done():
            task = asyncio.ensure_future(
                self._run_registration(scope, generate_missing=generate_missing)
            )
            self._registration_tasks[scope] = task
        else:
            log.debug("joining in-flight registration for %s", scope)
        return await asyncio.shield(task)

    async def _run_registration(
        self,
        scope: KeyScope,
        *,
        generate_missing: bool,
    ) -> RegistrationReceipt:
        try:
            return await self._register_once(scope, generate_missing=generate_missing)
        finally:
            if self._registration_tasks.get(scope) is asyncio.current_task():
                del self._registration_tasks[scope]

    async def _register_once(
        self,
        scope: KeyScope,
        *,
        generate_missing: bool,
    ) -> RegistrationReceipt:
        capability = await self._require_initialized(scope)
        key = self._key_manager.load_key(scope)
        if key is None:
            if not generate_missing:
                raise KeyMissingError()
            key = await self._key_manager.store_generated_key_if_absent(
                scope=scope,
                generator=capability.registration,
            )
            self._invalidate(scope)
            capability = await self._require_initialized(scope)
        elif not capability.has_key:
            self._invalidate(scope)
            capability = await self._require_initialized(scope)

        if await self._query_registered(scope, capability):
            log.info("wallet %s is already registered", scope)
            return RegistrationReceipt(key=key, transaction_hash=None)

        try:
            receipt = await capability.registration.register()
        except Exception as error:
            log.warning("registration failed for %s: %s", scope, error)
            if self._hooks.on_registration_failed is not None:
                self._hooks.on_registration_failed(scope)
            raise RegistrationFailedError(
                describe_sdk_error(error, fallback=RegistrationFailedError.default_message)
            ) from error

        log.info("registration submitted for %s: %s", scope, receipt.transaction_hash)
        if self._hooks.on_registration_submitted is not None:
            self._hooks.on_registration_submitted(scope)
        return RegistrationReceipt(key=key, transaction_hash=receipt.transaction_hash)

    async def _capability(self, scope: KeyScope) -> SdkCapability:
        key = self._key_manager.load_key(scope)
        key_value = key.value if key is not None else None
        cached = self._capabilities.get(scope)
        if cached is not None and cached[0] == key_value:
            return cached[1]
        capability = await self._gateway.resolve(scope=scope, decryption_key=key_value)
        if isinstance(capability, SdkInitialized):
            self._capabilities[scope] = (key_value, capability)
        return capability

    async def _require_initialized(self, scope: KeyScope) -> SdkInitialized:
        capability = await self._capability(scope)
        if not isinstance(capability, SdkInitialized):
            raise SdkNotInitializedError(capability.reason)
        return capability

    async def _query_registered(self, scope: KeyScope, capability: SdkInitialized) -> bool:
        try:
            return bool(await capability.registration.is_registered())
        except Exception as error:
            log.warning("registration status query failed for %s: %s", scope, error)
            raise SdkNotInitializedError(
                describe_sdk_error(error, fallback="Unable to read registration status.")
            ) from error

    def _invalidate(self, scope: KeyScope) -> None:
        self._capabilities.pop(scope, None)
