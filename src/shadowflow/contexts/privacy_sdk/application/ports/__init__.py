from .models import EncryptedAmount, TransferReceipt, TransferResult
from .primitives import (
    DecryptionKeyGenerator,
    EncryptedBalancePrimitive,
    RegistrationPrimitive,
)
from .privacy_sdk_gateway import (
    PrivacySdkGateway,
    SdkCapability,
    SdkInitialized,
    SdkUninitialized,
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
