from __future__ import annotations

from typing import Any, Mapping, Protocol

from .models import EncryptedAmount, TransferReceipt, TransferResult


class DecryptionKeyGenerator(Protocol):
    """
    DecryptionKeyGenerator — external key-generation primitive.

    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/key_lifecycle_manager.py
    """

    async def generate_decryption_key(self) -> str | Mapping[str, Any]:
        """
        Derive decryption key material for the connected wallet.

        Args:
            None.
        Returns:
            str | Mapping[str, Any]: Raw key string or structured key object.
        Assumptions:
            Primitive is deterministic per wallet signature seed.
        Raises:
            Exception: Any primitive failure; callers wrap it into typed errors.
        Side Effects:
            May prompt the wallet for a signature.
        """
        ...


class RegistrationPrimitive(DecryptionKeyGenerator, Protocol):
    """
    RegistrationPrimitive — external registrar exposing `isRegistered` and `register()`.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - src/shadowflow/contexts/privacy_sdk/adapters/outbound/sandbox/sandbox_privacy_sdk.py
    """

    async def is_registered(self) -> bool:
        ...

    async def register(self) -> TransferReceipt:
        """
        Submit registration transaction using the key the SDK was resolved with.

        Args:
            None.
        Returns:
            TransferReceipt: Registration transaction hash.
        Assumptions:
            SDK capability was resolved with a decryption key.
        Raises:
            Exception: Any primitive failure (user rejection, revert, network).
        Side Effects:
            Submits one on-chain transaction.
        """
        ...


class EncryptedBalancePrimitive(Protocol):
    """
    EncryptedBalancePrimitive — external encrypted-balance primitive.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/balance_service.py
      - src/shadowflow/contexts/donations/application/services/donation_orchestrator.py
      - src/shadowflow/contexts/donations/application/services/withdrawal_orchestrator.py
    """

    async def decimals(self) -> int:
        ...

    async def encrypted_balance(self) -> EncryptedAmount:
        ...

    async def decrypted_balance(self) -> int:
        """
        Decrypt own balance in base units.

        Args:
            None.
        Returns:
            int: Balance in base units.
        Assumptions:
            SDK capability was resolved with the registered decryption key.
        Raises:
            Exception: When decryption is impossible (missing or mismatched key).
        Side Effects:
            None.
        """
        ...

    async def private_transfer(self, *, to: str, amount: int, message: str) -> TransferReceipt:
        ...

    async def withdraw(self, *, amount: int, message: str) -> TransferReceipt:
        ...

    async def deposit(self, *, amount: int) -> TransferReceipt:
        """
        Convert public tokens of the wallet into encrypted balance.

        Args:
            amount: Base units to move from the public token into the encrypted balance.
        Returns:
            TransferReceipt: Hash of the submitted deposit transaction.
        Assumptions:
            Only the converter contract wraps a public token; standalone has nothing to wrap.
        Raises:
            Exception: When allowance, public balance or the wallet prompt fails.
        Side Effects:
            Submits one on-chain transaction.
        """
        ...

    async def decrypt_message(self, *, transaction_hash: str) -> TransferResult:
        ...
