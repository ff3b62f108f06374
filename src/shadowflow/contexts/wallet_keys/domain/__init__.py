from .decryption_key import DecryptionKey
from .registration_state import RegistrationState, derive_registration_state

__all__ = [
    "DecryptionKey",
    "RegistrationState",
    "derive_registration_state",
]
