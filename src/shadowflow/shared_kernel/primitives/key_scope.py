from __future__ import annotations

from dataclasses import dataclass

from .operating_mode import OperatingMode
from .wallet_address import WalletAddress


@dataclass(frozen=True, slots=True)
class KeyScope:
    """
    KeyScope — `(address, mode)` pair that owns exactly one decryption key.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/ports/key_store.py
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
    """

    address: WalletAddress
    mode: OperatingMode

    @classmethod
    def of(cls, address: str | WalletAddress, mode: str | OperatingMode) -> KeyScope:
        """
        Build scope from raw or typed address and mode values.

        Args:
            address: Wallet address string or value object.
            mode: Mode literal or enum value.
        Returns:
            KeyScope: Normalized scope.
        Assumptions:
            Raw strings are validated by the wrapped primitives.
        Raises:
            ValueError: If address or mode is invalid.
        Side Effects:
            None.
        """
        typed_address = address if isinstance(address, WalletAddress) else WalletAddress(address)
        typed_mode = mode if isinstance(mode, OperatingMode) else OperatingMode.parse(mode)
        return cls(address=typed_address, mode=typed_mode)

    def storage_key(self) -> str:
        """
        Return local key-value entry name `key:{mode}:{address}`.

        Args:
            None.
        Returns:
            str: Deterministic storage key.
        Assumptions:
            Address is already lower-case normalized.
        Raises:
            None.
        Side Effects:
            None.
        """
        return f"key:{self.mode.value}:{self.address.value}"

    def __str__(self) -> str:
        return f"{self.mode.value}:{self.address.value}"
