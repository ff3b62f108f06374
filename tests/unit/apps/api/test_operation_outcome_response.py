from __future__ import annotations

import pytest
from fastapi import Response

from apps.api.routes.operation_outcome import to_operation_outcome_response
from shadowflow.contexts.donations.domain import OperationOutcome, OutcomeState, PhaseResult
from shadowflow.platform.errors import (
    InsufficientBalanceError,
    LinkageFailedError,
    TransferFailedError,
)


def test_failed_outcome_raises_its_own_error() -> None:
    outcome = OperationOutcome.failure(InsufficientBalanceError())

    with pytest.raises(InsufficientBalanceError):
        to_operation_outcome_response(outcome=outcome, response=Response())


def test_failed_outcome_without_error_raises_transfer_failed() -> None:
    """
    Verify an error outcome lacking a phase error still maps to an operation error.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Outcome message becomes the error message.
    Raises:
        AssertionError: If conversion succeeds or raises another error type.
    Side Effects:
        None.
    """
    outcome = OperationOutcome(
        state=OutcomeState.ERROR,
        message="Withdrawal was not confirmed.",
        primary=PhaseResult.succeeded(),
    )

    with pytest.raises(TransferFailedError) as raised:
        to_operation_outcome_response(outcome=outcome, response=Response())

    assert raised.value.message == "Withdrawal was not confirmed."


def test_linkage_warning_sets_multi_status() -> None:
    response = Response()
    outcome = OperationOutcome(
        state=OutcomeState.SUCCESS,
        message="Donation sent privately.",
        primary=PhaseResult.succeeded("0xabc"),
        secondary=PhaseResult.failed(LinkageFailedError()),
    )

    payload = to_operation_outcome_response(outcome=outcome, response=response)

    assert response.status_code == 207
    assert payload.transaction_hash == "0xabc"
    assert payload.linkage_warning == LinkageFailedError.default_message
