from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from shadowflow.contexts.privacy_sdk.application.ports import (
    EncryptedAmount,
    PrivacySdkGateway,
    SdkCapability,
    SdkInitialized,
    SdkUninitialized,
    TransferReceipt,
    TransferResult,
)
from shadowflow.platform.time import SystemClock
from shadowflow.shared_kernel.primitives import KeyScope, WalletAddress

log = logging.getLogger(__name__)

_KEY_DERIVATION_NAMESPACE = "shadowflow.sandbox.decryption_key.v1|"
_CIPHERTEXT_WORDS = 4


class _Clock(Protocol):
    def now(self) -> datetime:
        ...


@dataclass(frozen=True, slots=True)
class _SandboxMessage:
    mode: str
    sender: str
    recipient: str | None
    message: str
    amount: int
    timestamp: datetime


class SandboxPrivacyLedger:
    """
    SandboxPrivacyLedger — deterministic in-memory stand-in for the encrypted token contracts.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/privacy_sdk/application/ports/privacy_sdk_gateway.py
      - apps/api/wiring/modules/shadowflow.py
      - tests/unit/contexts/donations/application/test_donation_orchestrator.py
    """

    def __init__(self, *, decimals: int = 2, clock: _Clock | None = None) -> None:
        """
        Initialize empty ledger for both operating modes.

        Args:
            decimals: Token scale used by every encrypted balance.
            clock: Optional UTC clock for message timestamps.
        Returns:
            None.
        Assumptions:
            Ledger is process-local; it never stores decryption keys, only fingerprints.
        Raises:
            ValueError: If decimals is negative.
        Side Effects:
            None.
        """
        if decimals < 0:
            raise ValueError("SandboxPrivacyLedger decimals must be >= 0")
        self.decimals = decimals
        self.available = True
        self._clock: _Clock = clock if clock is not None else SystemClock()
        self._registered: dict[tuple[str, str], str] = {}
        self._balances: dict[tuple[str, str], int] = {}
        self._public_balances: dict[str, int] = {}
        self._messages: dict[str, _SandboxMessage] = {}
        self._tx_counter = 0

    def credit(self, *, scope: KeyScope, amount: int) -> None:
        """Add base units to an account, standing in for a private mint or deposit."""
        if amount <= 0:
            raise ValueError("SandboxPrivacyLedger.credit amount must be > 0")
        slot = _slot(scope.mode.value, scope.address.value)
        self._balances[slot] = self._balances.get(slot, 0) + amount

    def balance_of(self, *, scope: KeyScope) -> int:
        return self._balances.get(_slot(scope.mode.value, scope.address.value), 0)

    def fund_public(self, *, address: str, amount: int) -> None:
        """Add public (unencrypted) token units that a converter deposit can wrap."""
        if amount <= 0:
            raise ValueError("SandboxPrivacyLedger.fund_public amount must be > 0")
        owner = WalletAddress(address).value
        self._public_balances[owner] = self._public_balances.get(owner, 0) + amount

    def public_balance_of(self, *, address: str) -> int:
        return self._public_balances.get(WalletAddress(address).value, 0)

    def registration_count(self) -> int:
        return len(self._registered)

    def message_count(self) -> int:
        return len(self._messages)

    def _is_registered(self, slot: tuple[str, str]) -> bool:
        return slot in self._registered

    def _register(self, slot: tuple[str, str], fingerprint: str) -> TransferReceipt:
        if slot in self._registered:
            raise RuntimeError("UserAlreadyRegistered")
        self._registered[slot] = fingerprint
        return TransferReceipt(transaction_hash=self._next_tx_hash(f"register|{slot}"))

    def _fingerprint_matches(self, slot: tuple[str, str], fingerprint: str | None) -> bool:
        return fingerprint is not None and self._registered.get(slot) == fingerprint

    def _move(
        self,
        *,
        slot: tuple[str, str],
        recipient: str | None,
        amount: int,
        message: str,
    ) -> TransferReceipt:
        if amount <= 0:
            raise RuntimeError("Amount must be greater than 0")
        balance = self._balances.get(slot, 0)
        if balance < amount:
            raise RuntimeError("Insufficient encrypted balance")
        self._balances[slot] = balance - amount
        if recipient is not None:
            recipient_slot = _slot(slot[0], recipient)
            self._balances[recipient_slot] = self._balances.get(recipient_slot, 0) + amount
        tx_hash = self._next_tx_hash(f"move|{slot}|{recipient}|{amount}")
        self._messages[tx_hash] = _SandboxMessage(
            mode=slot[0],
            sender=slot[1],
            recipient=recipient,
            message=message,
            amount=amount,
            timestamp=self._clock.now(),
        )
        return TransferReceipt(transaction_hash=tx_hash)

    def _deposit(self, *, slot: tuple[str, str], amount: int) -> TransferReceipt:
        if slot[0] != "converter":
            raise RuntimeError("Token address is not set")
        if amount <= 0:
            raise RuntimeError("Amount must be greater than 0")
        public = self._public_balances.get(slot[1], 0)
        if public < amount:
            raise RuntimeError("ERC20: insufficient allowance")
        self._public_balances[slot[1]] = public - amount
        self._balances[slot] = self._balances.get(slot, 0) + amount
        return TransferReceipt(transaction_hash=self._next_tx_hash(f"deposit|{slot}|{amount}"))

    def _message(self, transaction_hash: str) -> _SandboxMessage:
        found = self._messages.get(transaction_hash.strip().lower())
        if found is None:
            raise LookupError(f"transaction {transaction_hash} carries no encrypted message")
        return found

    def _next_tx_hash(self, seed: str) -> str:
        self._tx_counter += 1
        digest = hashlib.sha256(f"{self._tx_counter}|{seed}".encode("utf-8")).hexdigest()
        return f"0x{digest}"


class SandboxPrivacySdkSession:
    """
    Registration and encrypted-balance primitives bound to one scope and key state.
    """

    def __init__(
        self,
        *,
        ledger: SandboxPrivacyLedger,
        scope: KeyScope,
        decryption_key: str | None,
    ) -> None:
        self._ledger = ledger
        self._scope = scope
        self._slot = _slot(scope.mode.value, scope.address.value)
        self._fingerprint = _fingerprint(decryption_key) if decryption_key else None

    async def generate_decryption_key(self) -> str:
        material = (
            f"{_KEY_DERIVATION_NAMESPACE}{self._scope.mode.value}|{self._scope.address.value}"
        )
        return hashlib.sha256(material.encode("utf-8")).hexdigest()

    async def is_registered(self) -> bool:
        return self._ledger._is_registered(self._slot)

    async def register(self) -> TransferReceipt:
        if self._fingerprint is None:
            raise RuntimeError("Decryption key is required to register")
        return self._ledger._register(self._slot, self._fingerprint)

    async def decimals(self) -> int:
        return self._ledger.decimals

    async def encrypted_balance(self) -> EncryptedAmount:
        if not self._ledger._is_registered(self._slot):
            raise RuntimeError("UserNotRegistered")
        balance = self._ledger._balances.get(self._slot, 0)
        seed = f"{self._ledger._registered[self._slot]}|{balance}".encode("utf-8")
        digest = hashlib.sha512(seed).digest()
        word_size = len(digest) // _CIPHERTEXT_WORDS
        words = tuple(
            int.from_bytes(digest[index * word_size : (index + 1) * word_size], "big")
            for index in range(_CIPHERTEXT_WORDS)
        )
        return EncryptedAmount(ciphertext=words, decimals=self._ledger.decimals)

    async def decrypted_balance(self) -> int:
        self._require_own_key()
        return self._ledger._balances.get(self._slot, 0)

    async def private_transfer(self, *, to: str, amount: int, message: str) -> TransferReceipt:
        self._require_own_key()
        recipient = WalletAddress(to).value
        if not self._ledger._is_registered(_slot(self._slot[0], recipient)):
            raise RuntimeError("UserNotRegistered: recipient is not registered")
        receipt = self._ledger._move(
            slot=self._slot,
            recipient=recipient,
            amount=amount,
            message=message,
        )
        log.debug("sandbox private transfer %s", receipt.transaction_hash)
        return receipt

    async def withdraw(self, *, amount: int, message: str) -> TransferReceipt:
        self._require_own_key()
        return self._ledger._move(slot=self._slot, recipient=None, amount=amount, message=message)

    async def deposit(self, *, amount: int) -> TransferReceipt:
        self._require_own_key()
        receipt = self._ledger._deposit(slot=self._slot, amount=amount)
        log.debug("sandbox deposit %s", receipt.transaction_hash)
        return receipt

    async def decrypt_message(self, *, transaction_hash: str) -> TransferResult:
        self._require_own_key()
        found = self._ledger._message(transaction_hash)
        own_address = self._slot[1]
        if found.mode != self._slot[0] or own_address not in (found.sender, found.recipient):
            raise PermissionError("Wallet is not a party to this transfer")
        return TransferResult(
            transaction_hash=transaction_hash,
            message_from=found.sender,
            decrypted_message=found.message,
            message_to=found.recipient,
            timestamp=found.timestamp,
        )

    def _require_own_key(self) -> None:
        if not self._ledger._is_registered(self._slot):
            raise RuntimeError("UserNotRegistered")
        if not self._ledger._fingerprint_matches(self._slot, self._fingerprint):
            raise RuntimeError("Decryption key does not match registered public key")


class SandboxPrivacySdkGateway(PrivacySdkGateway):
    """
    SandboxPrivacySdkGateway — resolves sandbox sessions; reports uninitialized when disabled.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/privacy_sdk/application/ports/privacy_sdk_gateway.py
      - apps/api/wiring/modules/shadowflow.py
    """

    def __init__(self, *, ledger: SandboxPrivacyLedger) -> None:
        self._ledger = ledger
        self.resolve_calls = 0

    async def resolve(self, *, scope: KeyScope, decryption_key: str | None) -> SdkCapability:
        self.resolve_calls += 1
        if not self._ledger.available:
            return SdkUninitialized(reason="Sandbox privacy SDK is disabled")
        session = SandboxPrivacySdkSession(
            ledger=self._ledger,
            scope=scope,
            decryption_key=decryption_key,
        )
        return SdkInitialized(
            registration=session,
            balance=session,
            has_key=decryption_key is not None,
        )


def _slot(mode: str, address: str) -> tuple[str, str]:
    return (mode, address.strip().lower())


def _fingerprint(decryption_key: str) -> str:
    return hashlib.sha256(decryption_key.encode("utf-8")).hexdigest()[:32]
