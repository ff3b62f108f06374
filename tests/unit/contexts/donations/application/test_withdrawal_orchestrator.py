from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal

import pytest

from shadowflow.contexts.donations.adapters.outbound import (
    InMemoryCampaignLedger,
    InMemoryWalletSession,
)
from shadowflow.contexts.donations.application.services import (
    BalanceService,
    WithdrawalOrchestrator,
    WithdrawalRequest,
)
from shadowflow.contexts.donations.domain import decode_withdrawal
from shadowflow.contexts.privacy_sdk.adapters.outbound import (
    SandboxPrivacyLedger,
    SandboxPrivacySdkGateway,
)
from shadowflow.contexts.wallet_keys.adapters.outbound import (
    InMemoryLocalKeyValueStore,
    LocalKeyValueKeyStore,
)
from shadowflow.contexts.wallet_keys.application.services import (
    KeyLifecycleManager,
    RegistrationCoordinator,
)
from shadowflow.platform.concurrency import InFlightGuard
from shadowflow.platform.errors import WalletNotConnectedError
from shadowflow.shared_kernel.primitives import KeyScope

_OWNER = "0x" + "a" * 40
_CAMPAIGN = "0x" + "c" * 40
_SCOPE = KeyScope.of(_OWNER, "standalone")


@dataclass(frozen=True)
class _Ready:
    sandbox: SandboxPrivacyLedger
    coordinator: RegistrationCoordinator
    wallet: InMemoryWalletSession
    campaigns: InMemoryCampaignLedger
    orchestrator: WithdrawalOrchestrator


async def _ready(*, balance: int, guard: InFlightGuard | None = None) -> _Ready:
    sandbox = SandboxPrivacyLedger(decimals=2)
    coordinator = RegistrationCoordinator(
        gateway=SandboxPrivacySdkGateway(ledger=sandbox),
        key_manager=KeyLifecycleManager(
            key_store=LocalKeyValueKeyStore(storage=InMemoryLocalKeyValueStore())
        ),
        ready_attempts=1,
        ready_interval_seconds=0.0,
    )
    wallet = InMemoryWalletSession()
    wallet.connect(address=_OWNER, chain_id=43113)
    campaigns = InMemoryCampaignLedger()
    orchestrator = WithdrawalOrchestrator(
        coordinator=coordinator,
        balances=BalanceService(coordinator=coordinator),
        wallet=wallet,
        ledger=campaigns,
        expected_chain_id=43113,
        guard=guard,
    )
    await coordinator.register_with_key(_SCOPE)
    if balance > 0:
        sandbox.credit(scope=_SCOPE, amount=balance)
    return _Ready(
        sandbox=sandbox,
        coordinator=coordinator,
        wallet=wallet,
        campaigns=campaigns,
        orchestrator=orchestrator,
    )


@pytest.mark.parametrize(
    ("balance_units", "expected_units", "expected_amount"),
    [
        (500, 499, "4.99"),
        (2, 1, "0.01"),
        (1, 1, "0.01"),
    ],
)
def test_max_withdrawal_keeps_gas_reserve_only_when_balance_exceeds_it(
    balance_units: int,
    expected_units: int,
    expected_amount: str,
) -> None:
    """
    Verify max withdrawal formula against the default `0.01` reserve.

    Args:
        balance_units: Decrypted balance in base units (2 decimals).
        expected_units: Expected withdrawable base units.
        expected_amount: Expected formatted amount.
    Returns:
        None.
    Assumptions:
        Balance at or below the reserve is withdrawable in full.
    Raises:
        AssertionError: If formula changes.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        orchestrator = (await _ready(balance=balance_units)).orchestrator
        maximum = await orchestrator.max_withdrawal()
        assert maximum.units == expected_units
        assert maximum.amount == expected_amount
        assert maximum.balance_units == balance_units
        assert orchestrator.reserve == Decimal("0.01")

    asyncio.run(_scenario())


def test_withdrawal_to_own_wallet_links_campaign() -> None:
    """
    Verify withdrawal debits balance, encodes campaign message and links the campaign.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Funds always leave to the connected wallet itself.
    Raises:
        AssertionError: If ledger state or wire message differ.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        ready = await _ready(balance=500)
        sandbox, coordinator, campaigns = ready.sandbox, ready.coordinator, ready.campaigns
        orchestrator = ready.orchestrator

        outcome = await orchestrator.withdraw(
            WithdrawalRequest(amount="1.5", campaign_address=_CAMPAIGN)
        )

        assert outcome.succeeded is True
        assert outcome.message == "Withdrawal completed."
        assert outcome.transaction_hash is not None
        assert outcome.secondary is not None and outcome.secondary.ok is True
        assert sandbox.balance_of(scope=_SCOPE) == 350
        assert await campaigns.withdrawal_hashes(campaign_address=_CAMPAIGN) == (
            outcome.transaction_hash,
        )

        capability = await coordinator.require_ready(_SCOPE)
        result = await capability.balance.decrypt_message(
            transaction_hash=outcome.transaction_hash
        )
        decoded = decode_withdrawal(result.decrypted_message)
        assert decoded.is_withdrawal is True
        assert decoded.campaign_address == _CAMPAIGN

    asyncio.run(_scenario())


def test_plain_withdrawal_has_no_linkage_phase() -> None:
    async def _scenario() -> None:
        ready = await _ready(balance=500)
        sandbox, campaigns, orchestrator = ready.sandbox, ready.campaigns, ready.orchestrator

        outcome = await orchestrator.withdraw(WithdrawalRequest(amount="5"))

        assert outcome.succeeded is True
        assert outcome.secondary is None
        assert campaigns.link_calls == 0
        assert sandbox.balance_of(scope=_SCOPE) == 0

    asyncio.run(_scenario())


def test_withdrawal_shares_in_flight_guard_with_donations() -> None:
    """Verify a scope held by another transfer flow rejects the withdrawal."""

    async def _scenario() -> None:
        guard = InFlightGuard(name="shared")
        ready = await _ready(balance=500, guard=guard)
        sandbox, orchestrator = ready.sandbox, ready.orchestrator
        assert await guard.try_acquire(_SCOPE) is True

        outcome = await orchestrator.withdraw(WithdrawalRequest(amount="1"))

        assert outcome.error is not None
        assert outcome.error.code == "operation_in_progress"
        assert sandbox.balance_of(scope=_SCOPE) == 500

    asyncio.run(_scenario())


def test_withdrawal_rejects_amount_above_balance_and_empty_balance() -> None:
    async def _scenario() -> None:
        orchestrator = (await _ready(balance=0)).orchestrator
        empty = await orchestrator.withdraw(WithdrawalRequest(amount="1"))
        assert empty.error is not None
        assert empty.error.message == "Your encrypted balance is empty."

        funded = (await _ready(balance=100)).orchestrator
        too_much = await funded.withdraw(WithdrawalRequest(amount="1.01"))
        assert too_much.error is not None
        assert too_much.error.code == "insufficient_balance"

    asyncio.run(_scenario())


def test_max_withdrawal_requires_connected_wallet() -> None:
    async def _scenario() -> None:
        ready = await _ready(balance=100)
        ready.wallet.disconnect()
        with pytest.raises(WalletNotConnectedError):
            await ready.orchestrator.max_withdrawal()

    asyncio.run(_scenario())
