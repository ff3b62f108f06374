from __future__ import annotations

from shadowflow.platform.errors import (
    InsufficientBalanceError,
    LinkageFailedError,
    PrivacyOperationError,
    RegistrationFailedError,
    TransferRejectedError,
    describe_sdk_error,
    is_user_rejection,
)


def test_operation_error_uses_default_message_for_blank_override() -> None:
    """
    Verify blank message override falls back to class default and payload stays stable.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Payload keys are `error` and `message`.
    Raises:
        AssertionError: If message fallback or payload shape changes.
    Side Effects:
        None.
    """
    error = InsufficientBalanceError("   ")

    assert isinstance(error, PrivacyOperationError)
    assert isinstance(error, ValueError)
    assert error.message == "Insufficient balance."
    assert error.payload() == {"error": "insufficient_balance", "message": "Insufficient balance."}
    assert error.status_code == 409
    assert error.retryable is False


def test_retryable_and_warning_errors_metadata() -> None:
    assert RegistrationFailedError().retryable is True
    assert LinkageFailedError().status_code == 207
    assert TransferRejectedError().code == "transfer_rejected"


def test_describe_sdk_error_humanizes_known_messages() -> None:
    """
    Verify known SDK failure texts are mapped to user-facing messages.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Unknown messages pass through unchanged; empty messages use fallback.
    Raises:
        AssertionError: If mapping changes.
    Side Effects:
        None.
    """
    assert describe_sdk_error(RuntimeError("UserNotRegistered()"), fallback="x") == (
        "Please register with eERC20 first."
    )
    assert describe_sdk_error(
        RuntimeError("Error: last element of the message must be 0"),
        fallback="x",
    ) == "Message formatting error. Please try again."
    assert describe_sdk_error(RuntimeError("execution reverted"), fallback="x") == (
        "execution reverted"
    )
    assert describe_sdk_error(RuntimeError(""), fallback="Transfer failed.") == "Transfer failed."
    assert describe_sdk_error(None, fallback="Transfer failed.") == "Transfer failed."


def test_is_user_rejection_matches_wallet_provider_texts() -> None:
    assert is_user_rejection(RuntimeError("User rejected the request.")) is True
    assert is_user_rejection(RuntimeError("MetaMask Tx Signature: User denied transaction")) is True
    assert is_user_rejection(RuntimeError("insufficient funds for gas")) is False
