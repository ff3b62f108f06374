from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class EncryptedAmount:
    """
    EncryptedAmount — externally visible balance ciphertext plus token scale.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/privacy_sdk/application/ports/primitives.py
      - src/shadowflow/contexts/donations/application/services/balance_service.py
    """

    ciphertext: tuple[int, ...]
    decimals: int

    def __post_init__(self) -> None:
        """
        Validate ciphertext container and decimals scale.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Ciphertext is opaque; only its container shape is checked.
        Raises:
            ValueError: If decimals is negative or ciphertext contains non-integers.
        Side Effects:
            Freezes ciphertext into tuple form.
        """
        if self.decimals < 0:
            raise ValueError("EncryptedAmount.decimals must be >= 0")
        frozen = tuple(self.ciphertext)
        if any(not isinstance(item, int) for item in frozen):
            raise ValueError("EncryptedAmount.ciphertext must contain integers only")
        object.__setattr__(self, "ciphertext", frozen)


@dataclass(frozen=True, slots=True)
class TransferReceipt:
    """Transaction hash returned by a state-changing external primitive."""

    transaction_hash: str

    def __post_init__(self) -> None:
        if not self.transaction_hash.strip():
            raise ValueError("TransferReceipt.transaction_hash must be non-empty")


@dataclass(frozen=True, slots=True)
class TransferResult:
    """
    TransferResult — decrypted view of one private transfer message.

    `message_from` is the sender identity recovered during decryption.
    `timestamp` is the block time when the primitive knows it.
    """

    transaction_hash: str
    message_from: str
    decrypted_message: str
    message_to: str | None = None
    timestamp: datetime | None = None
