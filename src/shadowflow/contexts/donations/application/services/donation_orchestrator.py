from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from shadowflow.contexts.donations.domain import (
    OperationOutcome,
    OutcomeState,
    PhaseResult,
    encode_donation,
)
from shadowflow.platform.errors import InvalidRecipientError
from shadowflow.shared_kernel.primitives import KeyScope, is_wallet_address

from .private_operation_flow import FundedOperation, PrivateOperationFlow

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DonationRequest:
    """
    DonationRequest — raw donation form input.

    `campaign_reference` is embedded into the message; it is linked on the campaign
    contract only when it is a well-formed contract address.
    """

    amount: str
    recipient: str
    campaign_reference: str
    message: str | None = None


class DonationOrchestrator(PrivateOperationFlow):
    """
    DonationOrchestrator — validates, encodes, executes and best-effort links one donation.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/private_operation_flow.py
      - src/shadowflow/contexts/donations/domain/message_codec.py
      - apps/api/routes/donations.py
      - tests/unit/contexts/donations/application/test_donation_orchestrator.py
    """

    operation_kind = "donation"

    async def donate(self, request: DonationRequest) -> OperationOutcome:
        """
        Run one private donation through validation, transfer and campaign linkage.

        Args:
            request: Raw form input.
        Returns:
            OperationOutcome: Terminal outcome; errors are reported inside the outcome.
        Assumptions:
            Validation order is amount, wallet, SDK, readiness, recipient, balance known,
            balance sufficient. Each stage fails with its own error kind before any
            state-changing call. Identical requests are independent transfers.
        Raises:
            asyncio.CancelledError: If cancelled before the transfer is issued.
        Side Effects:
            Issues at most one private transfer and one linkage call.
        """

        async def validate(scope: KeyScope, amount: Decimal) -> FundedOperation:
            capability = await self._validate_ready(scope)
            if not is_wallet_address(request.recipient):
                raise InvalidRecipientError()
            return await self._validate_funds(scope=scope, capability=capability, amount=amount)

        async def execute(funded: FundedOperation) -> OperationOutcome:
            return await self._execute(funded, request)

        return await self._run_validated(
            raw_amount=request.amount,
            validate=validate,
            execute=execute,
        )

    async def _execute(self, funded: FundedOperation, request: DonationRequest) -> OperationOutcome:
        encoded_message = encode_donation(request.campaign_reference, request.message)
        try:
            receipt = await funded.capability.balance.private_transfer(
                to=request.recipient.strip(),
                amount=funded.amount_units,
                message=encoded_message,
            )
        except Exception as error:
            return OperationOutcome.failure(self._transfer_error(error))

        tx_hash = receipt.transaction_hash
        log.info("donation transfer %s submitted for %s", tx_hash, funded.scope)

        secondary: PhaseResult | None = None
        campaign_reference = request.campaign_reference.strip()
        if is_wallet_address(campaign_reference):

            async def link() -> None:
                await self._ledger.register_donation(
                    campaign_address=campaign_reference,
                    transaction_hash=tx_hash,
                )

            secondary = await self._link(link)

        return OperationOutcome(
            state=OutcomeState.SUCCESS,
            message="Donation sent privately.",
            primary=PhaseResult.succeeded(tx_hash),
            secondary=secondary,
        )
