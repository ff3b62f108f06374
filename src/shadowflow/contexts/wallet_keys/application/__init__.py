from .ports import KeyStore, KeyStoreSecretCipher, LocalKeyValueStore
from .services import (
    KeyLifecycleManager,
    KeyRecoveryService,
    RegistrationCoordinator,
    RegistrationCoordinatorHooks,
    RegistrationReceipt,
)

__all__ = [
    "KeyLifecycleManager",
    "KeyRecoveryService",
    "KeyStore",
    "KeyStoreSecretCipher",
    "LocalKeyValueStore",
    "RegistrationCoordinator",
    "RegistrationCoordinatorHooks",
    "RegistrationReceipt",
]
