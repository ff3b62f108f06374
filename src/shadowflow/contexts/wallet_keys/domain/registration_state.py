from __future__ import annotations

from enum import Enum


class RegistrationState(str, Enum):
    """
    RegistrationState — derived registration lifecycle of one key scope.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - apps/api/routes/wallet.py
    """

    UNINITIALIZED = "uninitialized"
    KEY_MISSING = "key_missing"
    KEY_PRESENT_UNREGISTERED = "key_present_unregistered"
    REGISTERING = "registering"
    READY = "ready"


def derive_registration_state(
    *,
    sdk_initialized: bool,
    key_present: bool,
    registered: bool,
    registration_in_flight: bool,
) -> RegistrationState:
    """
    Derive registration state from its four independent inputs.

    Args:
        sdk_initialized: Whether SDK capability resolved to `SdkInitialized`.
        key_present: Whether a key is stored for the scope.
        registered: Whether the external registrar reports the wallet as registered.
        registration_in_flight: Whether a registration submission is pending.
    Returns:
        RegistrationState: Derived state.
    Assumptions:
        State is never stored; it is recomputed on every read.
        A registered wallet without a local key is `KEY_MISSING`, never `READY`.
    Raises:
        None.
    Side Effects:
        None.
    """
    if not sdk_initialized:
        return RegistrationState.UNINITIALIZED
    if registration_in_flight:
        return RegistrationState.REGISTERING
    if not key_present:
        return RegistrationState.KEY_MISSING
    if not registered:
        return RegistrationState.KEY_PRESENT_UNREGISTERED
    return RegistrationState.READY
