"""
Private donation API routes.

Docs:
  - docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from pydantic import BaseModel

from shadowflow.contexts.donations.application.services import (
    DonationOrchestrator,
    DonationRequest,
)

from .operation_outcome import OperationOutcomeResponse, to_operation_outcome_response


class CreateDonationRequest(BaseModel):
    """
    CreateDonationRequest — API payload for `POST /donations`.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/donation_orchestrator.py
    """

    amount: str
    recipient: str
    campaign_reference: str
    message: str | None = None


def build_donations_router(*, orchestrator: DonationOrchestrator) -> APIRouter:
    """
    Build router exposing private donation endpoint.

    Args:
        orchestrator: Donation orchestrator.
    Returns:
        APIRouter: Configured donations router.
    Assumptions:
        Amount is a decimal string so no precision is lost in JSON.
    Raises:
        ValueError: If orchestrator is missing.
    Side Effects:
        None.
    """
    if orchestrator is None:  # type: ignore[truthy-bool]
        raise ValueError("build_donations_router requires orchestrator")

    router = APIRouter(tags=["donations"])

    @router.post("/donations", response_model=OperationOutcomeResponse)
    async def post_donation(
        request: CreateDonationRequest,
        response: Response,
    ) -> OperationOutcomeResponse:
        outcome = await orchestrator.donate(
            DonationRequest(
                amount=request.amount,
                recipient=request.recipient,
                campaign_reference=request.campaign_reference,
                message=request.message,
            )
        )
        return to_operation_outcome_response(outcome=outcome, response=response)

    return router
