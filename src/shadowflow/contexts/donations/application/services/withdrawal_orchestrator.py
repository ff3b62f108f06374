from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from shadowflow.contexts.donations.application.ports import CampaignLedger, WalletSession
from shadowflow.contexts.donations.domain import (
    DEFAULT_GAS_RESERVE,
    OperationOutcome,
    OutcomeState,
    PhaseResult,
    compute_max_withdrawal,
    encode_withdrawal,
    format_units,
)
from shadowflow.contexts.wallet_keys.application.services import RegistrationCoordinator
from shadowflow.platform.concurrency import InFlightGuard
from shadowflow.platform.errors import BalanceUnavailableError
from shadowflow.shared_kernel.primitives import KeyScope, is_wallet_address

from .balance_service import BalanceService
from .operation_hooks import PrivateOperationHooks
from .private_operation_flow import FundedOperation, PrivateOperationFlow
from .wallet_scope import resolve_active_scope

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WithdrawalRequest:
    """Raw withdrawal form input; funds always go to the connected wallet."""

    amount: str
    campaign_address: str | None = None


@dataclass(frozen=True, slots=True)
class MaxWithdrawal:
    """Largest withdrawable amount after keeping the fee reserve."""

    units: int
    decimals: int
    balance_units: int

    @property
    def amount(self) -> str:
        return format_units(self.units, self.decimals)


class WithdrawalOrchestrator(PrivateOperationFlow):
    """
    WithdrawalOrchestrator — validates and executes a private withdrawal to the own wallet.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/private_operation_flow.py
      - src/shadowflow/contexts/donations/domain/amounts.py
      - apps/api/routes/withdrawals.py
    """

    operation_kind = "withdrawal"

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
        reserve: Decimal = DEFAULT_GAS_RESERVE,
    ) -> None:
        if reserve < 0:
            raise ValueError("withdrawal gas reserve must be >= 0")
        super().__init__(
            coordinator=coordinator,
            balances=balances,
            wallet=wallet,
            ledger=ledger,
            expected_chain_id=expected_chain_id,
            guard=guard,
            hooks=hooks,
        )
        self._reserve = reserve

    @property
    def reserve(self) -> Decimal:
        return self._reserve

    async def withdraw(self, request: WithdrawalRequest) -> OperationOutcome:
        """
        Run one private withdrawal through validation, withdraw call and campaign linkage.

        Args:
            request: Raw form input.
        Returns:
            OperationOutcome: Terminal outcome; errors are reported inside the outcome.
        Assumptions:
            Validation order is amount, wallet, SDK, readiness, balance known, sufficient.
        Raises:
            asyncio.CancelledError: If cancelled before the withdrawal is issued.
        Side Effects:
            Issues at most one withdrawal and one linkage call.
        """

        async def validate(scope: KeyScope, amount: Decimal) -> FundedOperation:
            capability = await self._validate_ready(scope)
            return await self._validate_funds(scope=scope, capability=capability, amount=amount)

        async def execute(funded: FundedOperation) -> OperationOutcome:
            return await self._execute(funded, request)

        return await self._run_validated(
            raw_amount=request.amount,
            validate=validate,
            execute=execute,
        )

    async def max_withdrawal(self) -> MaxWithdrawal:
        """
        Compute max withdrawable amount for the connected wallet.

        Args:
            None.
        Returns:
            MaxWithdrawal: `balance - reserve` when balance exceeds reserve, else full balance.
        Assumptions:
            Reserve covers the network fee of the withdrawal transaction.
        Raises:
            WalletNotConnectedError: If no wallet is connected.
            SdkNotInitializedError: If SDK is not initialized.
            KeyMissingError: If no key is stored.
            NotRegisteredError: If wallet is not registered.
            BalanceUnavailableError: If balance cannot be decrypted.
        Side Effects:
            One balance decryption and one decimals read.
        """
        scope = resolve_active_scope(self._wallet, expected_chain_id=self._expected_chain_id)
        capability = await self._validate_ready(scope)
        balance = await self._balances.get_decrypted_balance(scope)
        if balance is None:
            raise BalanceUnavailableError(self._balances.last_error(scope))
        decimals = await self._read_decimals(capability)
        return MaxWithdrawal(
            units=compute_max_withdrawal(balance, decimals, reserve=self.reserve),
            decimals=decimals,
            balance_units=balance,
        )

    async def _execute(
        self,
        funded: FundedOperation,
        request: WithdrawalRequest,
    ) -> OperationOutcome:
        campaign_address = (request.campaign_address or "").strip() or None
        try:
            receipt = await funded.capability.balance.withdraw(
                amount=funded.amount_units,
                message=encode_withdrawal(campaign_address),
            )
        except Exception as error:
            return OperationOutcome.failure(self._transfer_error(error))

        tx_hash = receipt.transaction_hash
        log.info("withdrawal %s submitted for %s", tx_hash, funded.scope)

        secondary: PhaseResult | None = None
        if campaign_address is not None and is_wallet_address(campaign_address):

            async def link() -> None:
                await self._ledger.register_withdrawal(
                    campaign_address=campaign_address,
                    transaction_hash=tx_hash,
                )

            secondary = await self._link(link)

        return OperationOutcome(
            state=OutcomeState.SUCCESS,
            message="Withdrawal completed.",
            primary=PhaseResult.succeeded(tx_hash),
            secondary=secondary,
        )
