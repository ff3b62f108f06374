from .operation_errors import (
    BalanceUnavailableError,
    ConverterModeRequiredError,
    DecryptionFailedError,
    HistoryUnavailableError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRecipientError,
    KeyGenerationFailedError,
    KeyMissingError,
    KeyPersistenceFailedError,
    KeyRegenerationForbiddenError,
    KeyStoreCorruptedError,
    LinkageFailedError,
    NotRegisteredError,
    OperationInProgressError,
    PrivacyOperationError,
    RegistrationFailedError,
    SdkNotInitializedError,
    TransferFailedError,
    TransferRejectedError,
    WalletNotConnectedError,
)
from .sdk_messages import describe_sdk_error, is_user_rejection

__all__ = [
    "BalanceUnavailableError",
    "ConverterModeRequiredError",
    "DecryptionFailedError",
    "HistoryUnavailableError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "InvalidRecipientError",
    "KeyGenerationFailedError",
    "KeyMissingError",
    "KeyPersistenceFailedError",
    "KeyRegenerationForbiddenError",
    "KeyStoreCorruptedError",
    "LinkageFailedError",
    "NotRegisteredError",
    "OperationInProgressError",
    "PrivacyOperationError",
    "RegistrationFailedError",
    "SdkNotInitializedError",
    "TransferFailedError",
    "TransferRejectedError",
    "WalletNotConnectedError",
    "describe_sdk_error",
    "is_user_rejection",
]
