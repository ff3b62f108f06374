from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeAlias

from shadowflow.shared_kernel.primitives import KeyScope

from .primitives import EncryptedBalancePrimitive, RegistrationPrimitive


@dataclass(frozen=True, slots=True)
class SdkUninitialized:
    """SDK is not usable yet (wallet client missing, circuits still loading, ...)."""

    reason: str = "Privacy SDK is not initialized."


@dataclass(frozen=True, slots=True)
class SdkInitialized:
    """
    SdkInitialized — resolved SDK capability with registration and balance primitives.

    `has_key` reports whether the capability was resolved with a decryption key.
    """

    registration: RegistrationPrimitive
    balance: EncryptedBalancePrimitive
    has_key: bool


SdkCapability: TypeAlias = SdkUninitialized | SdkInitialized


class PrivacySdkGateway(Protocol):
    """
    PrivacySdkGateway — resolves the SDK capability for one scope and key state.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - src/shadowflow/contexts/privacy_sdk/adapters/outbound/sandbox/sandbox_privacy_sdk.py
    """

    async def resolve(self, *, scope: KeyScope, decryption_key: str | None) -> SdkCapability:
        """
        Resolve SDK capability once for scope and current key.

        Args:
            scope: Wallet address and operating mode.
            decryption_key: Stored key string or `None` when absent.
        Returns:
            SdkCapability: `SdkInitialized` when usable, otherwise `SdkUninitialized`.
        Assumptions:
            Key material is passed to the local SDK only, never to the network.
        Raises:
            None. Unavailability is reported through `SdkUninitialized`.
        Side Effects:
            May load circuits or connect the wallet client.
        """
        ...
