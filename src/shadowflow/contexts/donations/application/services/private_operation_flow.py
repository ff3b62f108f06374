from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable

from shadowflow.contexts.donations.application.ports import CampaignLedger, WalletSession
from shadowflow.contexts.donations.domain import (
    FlowState,
    OperationOutcome,
    PhaseResult,
    parse_amount,
    to_base_units,
)
from shadowflow.contexts.privacy_sdk.application.ports import SdkInitialized
from shadowflow.contexts.wallet_keys.application.services import RegistrationCoordinator
from shadowflow.platform.concurrency import InFlightGuard
from shadowflow.platform.errors import (
    BalanceUnavailableError,
    InsufficientBalanceError,
    LinkageFailedError,
    OperationInProgressError,
    PrivacyOperationError,
    SdkNotInitializedError,
    TransferFailedError,
    TransferRejectedError,
    describe_sdk_error,
    is_user_rejection,
)
from shadowflow.shared_kernel.primitives import KeyScope

from .balance_service import BalanceService
from .operation_hooks import PrivateOperationHooks
from .wallet_scope import resolve_active_scope

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FundedOperation:
    """Validated private operation: scope, ready capability and amount in base units."""

    scope: KeyScope
    capability: SdkInitialized
    amount_units: int
    decimals: int


class PrivateOperationFlow:
    """
    Shared validate/execute/link flow of private donations, withdrawals and deposits.

    Parameters:
    - coordinator: registration coordinator gating every encrypted operation.
    - balances: balance service used for sufficiency checks and post-transfer refresh.
    - wallet: wallet session port.
    - ledger: campaign ledger used for best-effort linkage.
    - expected_chain_id: required network, or `None` to accept any.
    - guard: in-flight registry shared by every flow that moves funds of a scope.
    - hooks: optional metrics callbacks.

    Assumptions/Invariants:
    - Validation never calls a state-changing primitive.
    - One operation per scope is in flight; a second one is rejected, never queued.
    - The guard is taken before validation, so a balance check never goes stale.
    - Once the transfer is issued the flow is shielded from caller cancellation.
    - The guard is released in `finally`, so no scope stays "processing" forever.
    """

    operation_kind = "private_operation"

    def __init__(
        self,
        *,
        coordinator: RegistrationCoordinator,
        balances: BalanceService,
        wallet: WalletSession,
        ledger: CampaignLedger,
        expected_chain_id: int | None = None,
        guard: InFlightGuard | None = None,
        hooks: PrivateOperationHooks | None = None,
    ) -> None:
        """
        Initialize flow collaborators and validate constructor arguments.

        Parameters:
        - see class docstring.

        Returns:
        - None.

        Assumptions/Invariants:
        - Collaborators are shared process-wide singletons.

        Errors/Exceptions:
        - Raises `ValueError` when a required collaborator is missing.

        Side effects:
        - None.
        """
        if coordinator is None:  # type: ignore[truthy-bool]
            raise ValueError(f"{type(self).__name__} requires coordinator")
        if balances is None:  # type: ignore[truthy-bool]
            raise ValueError(f"{type(self).__name__} requires balances")
        if wallet is None:  # type: ignore[truthy-bool]
            raise ValueError(f"{type(self).__name__} requires wallet")
        if ledger is None:  # type: ignore[truthy-bool]
            raise ValueError(f"{type(self).__name__} requires ledger")

        self._kind = self.operation_kind
        self._coordinator = coordinator
        self._balances = balances
        self._wallet = wallet
        self._ledger = ledger
        self._expected_chain_id = expected_chain_id
        self._guard = (
            guard if guard is not None else InFlightGuard(name=f"{self.operation_kind}-flow")
        )
        self._hooks = hooks if hooks is not None else PrivateOperationHooks()
        self._states: dict[KeyScope, FlowState] = {}

    def state_for(self, scope: KeyScope) -> FlowState:
        return self._states.get(scope, FlowState.FORM)

    def reset(self, scope: KeyScope) -> None:
        """Return a terminal form back to `Form`; an in-flight operation is left alone."""
        if not self._guard.is_in_flight(scope):
            self._states.pop(scope, None)

    async def _run_validated(
        self,
        *,
        raw_amount: str | None,
        validate: Callable[[KeyScope, Decimal], Awaitable[FundedOperation]],
        execute: Callable[[FundedOperation], Awaitable[OperationOutcome]],
    ) -> OperationOutcome:
        try:
            amount = parse_amount(raw_amount)
            scope = resolve_active_scope(self._wallet, expected_chain_id=self._expected_chain_id)
        except PrivacyOperationError as error:
            return self._rejected(None, error)

        if not await self._guard.try_acquire(scope):
            log.info("%s rejected: scope %s already in flight", self._kind, scope)
            busy = OperationInProgressError(
                f"Another private transfer is already processing for {scope.address.short()}."
            )
            self._notify_failed(busy)
            return OperationOutcome.failure(busy)

        # Held from validation through the transfer; the execute task owns the release.
        handed_off = False
        previous = self._states.get(scope)
        self._states[scope] = FlowState.VALIDATING
        try:
            try:
                funded = await validate(scope, amount)
            except PrivacyOperationError as error:
                return self._rejected(scope, error)
            except asyncio.CancelledError:
                self._restore(scope, previous)
                raise
            except Exception:
                self._states[scope] = FlowState.ERROR
                log.exception("%s validation crashed for %s", self._kind, scope)
                raise
            self._states[scope] = FlowState.PROCESSING
            task = asyncio.ensure_future(self._execute_locked(funded, execute))
            handed_off = True
        finally:
            if not handed_off:
                await self._guard.release(scope)
        return await asyncio.shield(task)

    async def _validate_ready(self, scope: KeyScope) -> SdkInitialized:
        if not await self._coordinator.is_initialized(scope):
            raise SdkNotInitializedError()
        return await self._coordinator.require_ready(scope)

    async def _validate_funds(
        self,
        *,
        scope: KeyScope,
        capability: SdkInitialized,
        amount: Decimal,
    ) -> FundedOperation:
        """
        Check that decrypted balance is known, non-zero and covers amount.

        Parameters:
        - scope: active key scope.
        - capability: ready SDK capability.
        - amount: positive token amount.

        Returns:
        - Funded operation with amount in base units.

        Assumptions/Invariants:
        - Amount is converted with the token's own `decimals`.

        Errors/Exceptions:
        - Raises `BalanceUnavailableError` when balance is unknown.
        - Raises `InsufficientBalanceError` when balance is zero or below amount.
        - Raises `InvalidAmountError` when amount truncates to zero base units.

        Side effects:
        - One balance decryption and one decimals read.
        """
        balance = await self._balances.get_decrypted_balance(scope)
        if balance is None:
            raise BalanceUnavailableError(self._balances.last_error(scope))
        if balance <= 0:
            raise InsufficientBalanceError("Your encrypted balance is empty.")
        decimals = await self._read_decimals(capability)
        amount_units = to_base_units(amount, decimals)
        if amount_units > balance:
            raise InsufficientBalanceError()
        return FundedOperation(
            scope=scope,
            capability=capability,
            amount_units=amount_units,
            decimals=decimals,
        )

    async def _read_decimals(self, capability: SdkInitialized) -> int:
        try:
            return int(await capability.balance.decimals())
        except Exception as error:
            raise BalanceUnavailableError(
                describe_sdk_error(error, fallback="Unable to read token decimals.")
            ) from error

    async def _execute_locked(
        self,
        funded: FundedOperation,
        execute: Callable[[FundedOperation], Awaitable[OperationOutcome]],
    ) -> OperationOutcome:
        scope = funded.scope
        try:
            outcome = await execute(funded)
        except Exception:
            self._states[scope] = FlowState.ERROR
            log.exception("%s flow crashed for %s", self._kind, scope)
            raise
        finally:
            await self._guard.release(scope)

        if outcome.succeeded:
            self._states[scope] = FlowState.SUCCESS
            if self._hooks.on_operation_succeeded is not None:
                self._hooks.on_operation_succeeded(self._kind)
            await self._refresh_after_transfer(scope)
        else:
            self._states[scope] = FlowState.ERROR
            self._notify_failed(outcome.error)
        return outcome

    def _transfer_error(self, error: Exception) -> PrivacyOperationError:
        if is_user_rejection(error):
            log.info("%s rejected in wallet", self._kind)
            return TransferRejectedError()
        log.warning("%s transfer failed: %s", self._kind, error)
        return TransferFailedError(
            describe_sdk_error(error, fallback=TransferFailedError.default_message)
        )

    async def _link(self, link: Callable[[], Awaitable[None]]) -> PhaseResult:
        try:
            await link()
        except Exception as error:
            log.warning("%s campaign linkage failed: %s", self._kind, error)
            if self._hooks.on_linkage_failed is not None:
                self._hooks.on_linkage_failed(self._kind)
            detail = describe_sdk_error(error, fallback="unknown error")
            return PhaseResult.failed(
                LinkageFailedError(f"{LinkageFailedError.default_message} ({detail})")
            )
        return PhaseResult.succeeded()

    async def _refresh_after_transfer(self, scope: KeyScope) -> None:
        try:
            await self._balances.refresh(scope)
        except PrivacyOperationError as error:
            log.warning("balance refresh after %s failed for %s: %s", self._kind, scope, error)

    def _restore(self, scope: KeyScope, previous: FlowState | None) -> None:
        if previous is None:
            self._states.pop(scope, None)
        else:
            self._states[scope] = previous

    def _rejected(self, scope: KeyScope | None, error: PrivacyOperationError) -> OperationOutcome:
        log.info("%s rejected: %s", self._kind, error.code)
        if scope is not None:
            self._states[scope] = FlowState.ERROR
        self._notify_failed(error)
        return OperationOutcome.failure(error)

    def _notify_failed(self, error: PrivacyOperationError | None) -> None:
        if error is not None and self._hooks.on_operation_failed is not None:
            self._hooks.on_operation_failed(self._kind, error.code)
