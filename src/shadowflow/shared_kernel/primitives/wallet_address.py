from __future__ import annotations

import re
from dataclasses import dataclass

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_wallet_address(raw_value: str | None) -> bool:
    """
    Check whether value is a well-formed `0x`-prefixed 20-byte hex address.

    Args:
        raw_value: Candidate address string.
    Returns:
        bool: `True` for syntactically valid EVM addresses.
    Assumptions:
        Checksum casing is not verified; any hex casing is accepted.
    Raises:
        None.
    Side Effects:
        None.
    """
    if raw_value is None:
        return False
    return _ADDRESS_PATTERN.fullmatch(raw_value.strip()) is not None


@dataclass(frozen=True, slots=True)
class WalletAddress:
    """
    WalletAddress — normalized lower-case EVM account or contract address.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/shared_kernel/primitives/key_scope.py
      - src/shadowflow/contexts/donations/application/ports/wallet_session.py
    """

    value: str

    def __post_init__(self) -> None:
        """
        Validate and normalize wrapped address.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Addresses compare case-insensitively, so storage uses lower case.
        Raises:
            ValueError: If value is not a well-formed address.
        Side Effects:
            Replaces frozen `value` slot with normalized lower-case string.
        """
        if not isinstance(self.value, str) or not is_wallet_address(self.value):
            raise ValueError(f"WalletAddress requires 0x-prefixed 40-hex value, got {self.value!r}")
        object.__setattr__(self, "value", self.value.strip().lower())

    @classmethod
    def from_string(cls, raw_value: str) -> WalletAddress:
        return cls(raw_value)

    def short(self) -> str:
        """Return `0x1234...abcd` display form."""
        return f"{self.value[:6]}...{self.value[-4:]}"

    def __str__(self) -> str:
        return self.value
