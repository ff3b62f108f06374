from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from shadowflow.contexts.donations.domain import (
    OperationOutcome,
    OutcomeState,
    PhaseResult,
    format_units,
    to_base_units,
)
from shadowflow.platform.errors import ConverterModeRequiredError
from shadowflow.shared_kernel.primitives import KeyScope, OperatingMode

from .private_operation_flow import FundedOperation, PrivateOperationFlow

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DepositRequest:
    """Raw converter form input; public tokens of the connected wallet are wrapped."""

    amount: str


class DepositOrchestrator(PrivateOperationFlow):
    """
    DepositOrchestrator — converts public tokens into encrypted balance in converter mode.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/private_operation_flow.py
      - src/shadowflow/contexts/privacy_sdk/application/ports/primitives.py
      - apps/api/routes/deposits.py
    """

    operation_kind = "deposit"

    async def deposit(self, request: DepositRequest) -> OperationOutcome:
        """
        Run one converter deposit through validation and the deposit call.

        Args:
            request: Raw form input.
        Returns:
            OperationOutcome: Terminal outcome; errors are reported inside the outcome.
        Assumptions:
            Validation order is amount, wallet, converter mode, SDK, readiness.
            Encrypted balance is not checked; the public token balance is the
            primitive's concern and surfaces as a transfer failure.
        Raises:
            asyncio.CancelledError: If cancelled before the deposit is issued.
        Side Effects:
            Issues at most one deposit call.
        """

        async def validate(scope: KeyScope, amount: Decimal) -> FundedOperation:
            if scope.mode is not OperatingMode.CONVERTER:
                raise ConverterModeRequiredError()
            capability = await self._validate_ready(scope)
            decimals = await self._read_decimals(capability)
            return FundedOperation(
                scope=scope,
                capability=capability,
                amount_units=to_base_units(amount, decimals),
                decimals=decimals,
            )

        return await self._run_validated(
            raw_amount=request.amount,
            validate=validate,
            execute=self._execute,
        )

    async def _execute(self, funded: FundedOperation) -> OperationOutcome:
        try:
            receipt = await funded.capability.balance.deposit(amount=funded.amount_units)
        except Exception as error:
            return OperationOutcome.failure(self._transfer_error(error))

        log.info("deposit %s submitted for %s", receipt.transaction_hash, funded.scope)
        converted = format_units(funded.amount_units, funded.decimals)
        return OperationOutcome(
            state=OutcomeState.SUCCESS,
            message=f"Converted {converted} tokens into encrypted balance.",
            primary=PhaseResult.succeeded(receipt.transaction_hash),
        )
