"""
Converter-mode deposit API routes.

Docs:
  - docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from pydantic import BaseModel

from shadowflow.contexts.donations.application.services import (
    DepositOrchestrator,
    DepositRequest,
)

from .operation_outcome import OperationOutcomeResponse, to_operation_outcome_response


class CreateDepositRequest(BaseModel):
    amount: str


def build_deposits_router(*, orchestrator: DepositOrchestrator) -> APIRouter:
    """
    Build router converting public tokens into encrypted balance.

    Args:
        orchestrator: Deposit orchestrator.
    Returns:
        APIRouter: Configured deposits router.
    Assumptions:
        Deposits are accepted only while the wallet session is in converter mode.
    Raises:
        ValueError: If orchestrator is missing.
    Side Effects:
        None.
    """
    if orchestrator is None:  # type: ignore[truthy-bool]
        raise ValueError("build_deposits_router requires orchestrator")

    router = APIRouter(prefix="/deposits", tags=["deposits"])

    @router.post("", response_model=OperationOutcomeResponse)
    async def post_deposit(
        request: CreateDepositRequest,
        response: Response,
    ) -> OperationOutcomeResponse:
        outcome = await orchestrator.deposit(DepositRequest(amount=request.amount))
        return to_operation_outcome_response(outcome=outcome, response=response)

    return router
