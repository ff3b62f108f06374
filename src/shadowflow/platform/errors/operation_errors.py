from __future__ import annotations


class PrivacyOperationError(ValueError):
    """
    PrivacyOperationError — deterministic application error for private donation flows.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/donation_orchestrator.py
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - apps/api/common/errors.py
    """

    code = "privacy_operation_error"
    default_message = "Private operation failed."
    status_code = 400
    retryable = False

    def __init__(self, message: str | None = None) -> None:
        """
        Initialize operation error with stable code and human-readable message.

        Args:
            message: Optional message override; class default is used when blank.
        Returns:
            None.
        Assumptions:
            Message never contains decryption keys or other secrets.
        Raises:
            None.
        Side Effects:
            None.
        """
        normalized = (message or "").strip() or self.default_message
        super().__init__(normalized)
        self.message = normalized

    def payload(self) -> dict[str, str]:
        """
        Build deterministic payload with stable key order.

        Args:
            None.
        Returns:
            dict[str, str]: `{"error": "...", "message": "..."}` payload.
        Assumptions:
            Payload is used as HTTP error detail and in operation outcomes.
        Raises:
            None.
        Side Effects:
            None.
        """
        return {
            "error": self.code,
            "message": self.message,
        }


class InvalidAmountError(PrivacyOperationError):
    """Amount is missing, non-numeric, not positive, or below one base unit."""

    code = "invalid_amount"
    default_message = "Please enter a valid amount greater than 0."
    status_code = 422


class InsufficientBalanceError(PrivacyOperationError):
    """Decrypted balance is zero or lower than the requested amount."""

    code = "insufficient_balance"
    default_message = "Insufficient balance."
    status_code = 409


class BalanceUnavailableError(PrivacyOperationError):
    """Decrypted balance is unknown (not fetched or not decryptable)."""

    code = "balance_unavailable"
    default_message = "Unable to decrypt balance."
    status_code = 409


class WalletNotConnectedError(PrivacyOperationError):
    code = "wallet_not_connected"
    default_message = "Wallet not connected."
    status_code = 401


class SdkNotInitializedError(PrivacyOperationError):
    code = "sdk_not_initialized"
    default_message = "Privacy SDK is not initialized."
    status_code = 503
    retryable = True


class KeyMissingError(PrivacyOperationError):
    code = "key_missing"
    default_message = "No decryption key is stored for this wallet."
    status_code = 409


class KeyGenerationFailedError(PrivacyOperationError):
    code = "key_generation_failed"
    default_message = "Failed to generate decryption key."
    status_code = 502
    retryable = True


class KeyPersistenceFailedError(PrivacyOperationError):
    code = "key_persistence_failed"
    default_message = "Failed to persist decryption key."
    status_code = 507


class KeyStoreCorruptedError(PrivacyOperationError):
    code = "key_store_corrupted"
    default_message = "Stored decryption key is corrupted; recovery is required."
    status_code = 409


class KeyRegenerationForbiddenError(PrivacyOperationError):
    """
    Regenerating a key for an already registered wallet would orphan encrypted balances.
    """

    code = "key_regeneration_forbidden"
    default_message = (
        "Wallet is already registered; regenerating the key would make balances undecryptable."
    )
    status_code = 409


class NotRegisteredError(PrivacyOperationError):
    code = "not_registered"
    default_message = "Please register with eERC20 first."
    status_code = 409


class RegistrationFailedError(PrivacyOperationError):
    code = "registration_failed"
    default_message = "Registration failed."
    status_code = 502
    retryable = True


class InvalidRecipientError(PrivacyOperationError):
    code = "invalid_recipient"
    default_message = "Invalid recipient address."
    status_code = 422


class ConverterModeRequiredError(PrivacyOperationError):
    """Operation needs the converter contract but the wallet session is standalone."""

    code = "converter_mode_required"
    default_message = "Deposits are only available in converter mode."
    status_code = 409


class OperationInProgressError(PrivacyOperationError):
    code = "operation_in_progress"
    default_message = "Another operation is already in progress for this wallet."
    status_code = 409
    retryable = True


class TransferRejectedError(PrivacyOperationError):
    """User declined the transaction in the wallet."""

    code = "transfer_rejected"
    default_message = "Transaction was rejected."
    status_code = 400


class TransferFailedError(PrivacyOperationError):
    code = "transfer_failed"
    default_message = "Transfer failed."
    status_code = 502
    retryable = True


class LinkageFailedError(PrivacyOperationError):
    """
    Campaign bookkeeping failed after a successful transfer; warning level only.
    """

    code = "linkage_failed"
    default_message = "Transfer succeeded but campaign linkage failed."
    status_code = 207
    retryable = True


class DecryptionFailedError(PrivacyOperationError):
    code = "decryption_failed"
    default_message = "Failed to decrypt message."
    status_code = 422


class HistoryUnavailableError(PrivacyOperationError):
    code = "history_unavailable"
    default_message = "Failed to load donation history."
    status_code = 502
    retryable = True
