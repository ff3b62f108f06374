from .key_lifecycle_manager import KeyLifecycleManager
from .key_recovery_service import KeyRecoveryService
from .registration_coordinator import (
    RegistrationCoordinator,
    RegistrationCoordinatorHooks,
    RegistrationReceipt,
)

__all__ = [
    "KeyLifecycleManager",
    "KeyRecoveryService",
    "RegistrationCoordinator",
    "RegistrationCoordinatorHooks",
    "RegistrationReceipt",
]
