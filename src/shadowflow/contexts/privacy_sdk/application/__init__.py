from .ports import (
    DecryptionKeyGenerator,
    EncryptedAmount,
    EncryptedBalancePrimitive,
    PrivacySdkGateway,
    RegistrationPrimitive,
    SdkCapability,
    SdkInitialized,
    SdkUninitialized,
    TransferReceipt,
    TransferResult,
)

__all__ = [
    "DecryptionKeyGenerator",
    "EncryptedAmount",
    "EncryptedBalancePrimitive",
    "PrivacySdkGateway",
    "RegistrationPrimitive",
    "SdkCapability",
    "SdkInitialized",
    "SdkUninitialized",
    "TransferReceipt",
    "TransferResult",
]
