"""
Private withdrawal API routes.

Docs:
  - docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from pydantic import BaseModel

from shadowflow.contexts.donations.application.services import (
    WithdrawalOrchestrator,
    WithdrawalRequest,
)

from .operation_outcome import OperationOutcomeResponse, to_operation_outcome_response


class CreateWithdrawalRequest(BaseModel):
    amount: str
    campaign_address: str | None = None


class MaxWithdrawalResponse(BaseModel):
    """
    MaxWithdrawalResponse — max withdrawable amount after gas reserve.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/withdrawal_orchestrator.py
    """

    amount: str
    units: int
    decimals: int
    balance_units: int
    reserve: str


def build_withdrawals_router(*, orchestrator: WithdrawalOrchestrator) -> APIRouter:
    """
    Build router exposing private withdrawal endpoints.

    Args:
        orchestrator: Withdrawal orchestrator.
    Returns:
        APIRouter: Configured withdrawals router.
    Assumptions:
        Withdrawals always go to the connected wallet itself.
    Raises:
        ValueError: If orchestrator is missing.
    Side Effects:
        None.
    """
    if orchestrator is None:  # type: ignore[truthy-bool]
        raise ValueError("build_withdrawals_router requires orchestrator")

    router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])

    @router.post("", response_model=OperationOutcomeResponse)
    async def post_withdrawal(
        request: CreateWithdrawalRequest,
        response: Response,
    ) -> OperationOutcomeResponse:
        outcome = await orchestrator.withdraw(
            WithdrawalRequest(amount=request.amount, campaign_address=request.campaign_address)
        )
        return to_operation_outcome_response(outcome=outcome, response=response)

    @router.get("/max", response_model=MaxWithdrawalResponse)
    async def get_max_withdrawal() -> MaxWithdrawalResponse:
        result = await orchestrator.max_withdrawal()
        return MaxWithdrawalResponse(
            amount=result.amount,
            units=result.units,
            decimals=result.decimals,
            balance_units=result.balance_units,
            reserve=str(orchestrator.reserve),
        )

    return router
