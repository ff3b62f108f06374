from __future__ import annotations

from fastapi import Response
from pydantic import BaseModel

from shadowflow.contexts.donations.domain import OperationOutcome
from shadowflow.platform.errors import LinkageFailedError, TransferFailedError


class OperationOutcomeResponse(BaseModel):
    """
    OperationOutcomeResponse — successful donation/withdrawal with optional linkage warning.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/domain/models.py
      - apps/api/routes/donations.py
      - apps/api/routes/withdrawals.py
    """

    state: str
    message: str
    transaction_hash: str | None
    linkage_warning: str | None


def to_operation_outcome_response(
    *,
    outcome: OperationOutcome,
    response: Response,
) -> OperationOutcomeResponse:
    """
    Convert terminal outcome into API response or raise its error.

    Args:
        outcome: Terminal operation outcome.
        response: FastAPI response used to set multi-status code on linkage warning.
    Returns:
        OperationOutcomeResponse: Success payload.
    Assumptions:
        Failed outcomes are rendered by the shared operation error handler.
    Raises:
        PrivacyOperationError: Error of a failed outcome.
    Side Effects:
        Sets `207` status when transfer succeeded but campaign linkage failed.
    """
    if not outcome.succeeded:
        if outcome.error is not None:
            raise outcome.error
        raise TransferFailedError(outcome.message or None)
    if outcome.linkage_warning is not None:
        response.status_code = LinkageFailedError.status_code
    return OperationOutcomeResponse(
        state=outcome.state.value,
        message=outcome.message,
        transaction_hash=outcome.transaction_hash,
        linkage_warning=outcome.linkage_warning,
    )
