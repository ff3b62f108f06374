from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from shadowflow.contexts.donations.adapters.outbound import (
    InMemoryCampaignLedger,
    InMemoryWalletSession,
)
from shadowflow.contexts.donations.application.services import (
    BalanceService,
    DonationOrchestrator,
    DonationRequest,
    PrivateOperationHooks,
)
from shadowflow.contexts.donations.domain import FlowState, decode_donation
from shadowflow.contexts.privacy_sdk.adapters.outbound import (
    SandboxPrivacyLedger,
    SandboxPrivacySdkGateway,
)
from shadowflow.contexts.privacy_sdk.application.ports import (
    EncryptedAmount,
    EncryptedBalancePrimitive,
    SdkCapability,
    SdkInitialized,
    TransferReceipt,
    TransferResult,
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
from shadowflow.shared_kernel.primitives import KeyScope

_CHAIN_ID = 43113
_DONOR = "0x" + "a" * 40
_RECIPIENT = "0x" + "b" * 40
_CAMPAIGN = "0x" + "c" * 40
_DONOR_SCOPE = KeyScope.of(_DONOR, "standalone")
_RECIPIENT_SCOPE = KeyScope.of(_RECIPIENT, "standalone")


class _ScriptedBalance:
    """
    Encrypted-balance wrapper that can hold or fail decimals and transfer calls.
    """

    def __init__(self, inner: EncryptedBalancePrimitive, gateway: _ScriptedGateway) -> None:
        self._inner = inner
        self._gateway = gateway

    async def decimals(self) -> int:
        self._gateway.decimals_entered.set()
        if self._gateway.decimals_gate is not None:
            await self._gateway.decimals_gate.wait()
        return await self._inner.decimals()

    async def encrypted_balance(self) -> EncryptedAmount:
        return await self._inner.encrypted_balance()

    async def decrypted_balance(self) -> int:
        return await self._inner.decrypted_balance()

    async def private_transfer(self, *, to: str, amount: int, message: str) -> TransferReceipt:
        self._gateway.transfer_entered.set()
        if self._gateway.transfer_gate is not None:
            await self._gateway.transfer_gate.wait()
        if self._gateway.transfer_error is not None:
            raise self._gateway.transfer_error
        return await self._inner.private_transfer(to=to, amount=amount, message=message)

    async def withdraw(self, *, amount: int, message: str) -> TransferReceipt:
        return await self._inner.withdraw(amount=amount, message=message)

    async def decrypt_message(self, *, transaction_hash: str) -> TransferResult:
        return await self._inner.decrypt_message(transaction_hash=transaction_hash)


class _ScriptedGateway:
    def __init__(self, *, ledger: SandboxPrivacyLedger) -> None:
        self._inner = SandboxPrivacySdkGateway(ledger=ledger)
        self.transfer_error: Exception | None = None
        self.transfer_gate: asyncio.Event | None = None
        self.decimals_gate: asyncio.Event | None = None
        self.transfer_entered = asyncio.Event()
        self.decimals_entered = asyncio.Event()

    async def resolve(self, *, scope: KeyScope, decryption_key: str | None) -> SdkCapability:
        capability = await self._inner.resolve(scope=scope, decryption_key=decryption_key)
        if not isinstance(capability, SdkInitialized):
            return capability
        return SdkInitialized(
            registration=capability.registration,
            balance=_ScriptedBalance(capability.balance, self),
            has_key=capability.has_key,
        )


@dataclass
class _World:
    sandbox: SandboxPrivacyLedger
    gateway: _ScriptedGateway
    storage: InMemoryLocalKeyValueStore
    coordinator: RegistrationCoordinator
    balances: BalanceService
    wallet: InMemoryWalletSession
    campaigns: InMemoryCampaignLedger
    guard: InFlightGuard
    orchestrator: DonationOrchestrator
    events: list[tuple[str, ...]] = field(default_factory=list)


def _world() -> _World:
    sandbox = SandboxPrivacyLedger(decimals=2)
    gateway = _ScriptedGateway(ledger=sandbox)
    storage = InMemoryLocalKeyValueStore()
    coordinator = RegistrationCoordinator(
        gateway=gateway,
        key_manager=KeyLifecycleManager(key_store=LocalKeyValueKeyStore(storage=storage)),
        ready_attempts=1,
        ready_interval_seconds=0.0,
    )
    balances = BalanceService(coordinator=coordinator)
    wallet = InMemoryWalletSession()
    campaigns = InMemoryCampaignLedger()
    guard = InFlightGuard(name="test-transfers")
    events: list[tuple[str, ...]] = []
    orchestrator = DonationOrchestrator(
        coordinator=coordinator,
        balances=balances,
        wallet=wallet,
        ledger=campaigns,
        expected_chain_id=_CHAIN_ID,
        guard=guard,
        hooks=PrivateOperationHooks(
            on_operation_succeeded=lambda kind: events.append(("succeeded", kind)),
            on_operation_failed=lambda kind, code: events.append(("failed", kind, code)),
            on_linkage_failed=lambda kind: events.append(("linkage_failed", kind)),
        ),
    )
    return _World(
        sandbox=sandbox,
        gateway=gateway,
        storage=storage,
        coordinator=coordinator,
        balances=balances,
        wallet=wallet,
        campaigns=campaigns,
        guard=guard,
        orchestrator=orchestrator,
        events=events,
    )


async def _ready_world(*, donor_balance: int = 1_000) -> _World:
    world = _world()
    world.wallet.connect(address=_DONOR, chain_id=_CHAIN_ID)
    await world.coordinator.register_with_key(_DONOR_SCOPE)
    await world.coordinator.register_with_key(_RECIPIENT_SCOPE)
    world.sandbox.credit(scope=_DONOR_SCOPE, amount=donor_balance)
    return world


def _request(amount: str = "2.5", **overrides: str) -> DonationRequest:
    values = {
        "amount": amount,
        "recipient": _RECIPIENT,
        "campaign_reference": _CAMPAIGN,
        "message": "Keep going",
    }
    values.update(overrides)
    return DonationRequest(**values)


def test_donation_validation_rejects_each_stage_before_any_transfer() -> None:
    """
    Verify validation order and that no rejected donation reaches the primitive.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Order is amount, wallet, SDK, readiness, recipient, balance known, sufficient.
    Raises:
        AssertionError: If a stage reports the wrong error kind or transfers funds.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        world = _world()
        orchestrator = world.orchestrator

        async def code_of(request: DonationRequest) -> str:
            outcome = await orchestrator.donate(request)
            assert outcome.succeeded is False
            assert outcome.error is not None
            return outcome.error.code

        assert await code_of(_request("abc")) == "invalid_amount"
        assert await code_of(_request("0")) == "invalid_amount"
        assert await code_of(_request("-5")) == "invalid_amount"
        assert await code_of(_request("")) == "invalid_amount"
        assert await code_of(_request()) == "wallet_not_connected"

        world.wallet.connect(address=_DONOR, chain_id=1)
        assert await code_of(_request()) == "wallet_not_connected"

        world.wallet.connect(address=_DONOR, chain_id=_CHAIN_ID)
        world.sandbox.available = False
        assert await code_of(_request()) == "sdk_not_initialized"

        world.sandbox.available = True
        assert await code_of(_request()) == "key_missing"

        await world.coordinator.generate_key(_DONOR_SCOPE)
        assert await code_of(_request()) == "not_registered"

        await world.coordinator.register(_DONOR_SCOPE)
        await world.coordinator.register_with_key(_RECIPIENT_SCOPE)
        assert await code_of(_request(recipient="not-an-address")) == "invalid_recipient"

        outcome = await orchestrator.donate(_request())
        assert outcome.error is not None
        assert outcome.error.code == "insufficient_balance"
        assert outcome.error.message == "Your encrypted balance is empty."

        world.sandbox.credit(scope=_DONOR_SCOPE, amount=100)
        assert await code_of(_request("5")) == "insufficient_balance"
        assert await code_of(_request("0.001")) == "invalid_amount"

        world.storage.set(_DONOR_SCOPE.storage_key(), "key-from-another-device")
        assert await code_of(_request()) == "balance_unavailable"

        assert orchestrator.state_for(_DONOR_SCOPE) is FlowState.ERROR
        assert world.sandbox.message_count() == 0
        assert world.campaigns.link_calls == 0
        assert world.events[0] == ("failed", "donation", "invalid_amount")

    asyncio.run(_scenario())


def test_donation_transfers_encodes_message_and_links_campaign() -> None:
    """
    Verify successful donation: transfer, wire message, campaign linkage and refresh.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Amount is converted with token decimals (2 in sandbox).
    Raises:
        AssertionError: If balances, message or linkage differ.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        world = await _ready_world()

        outcome = await world.orchestrator.donate(_request("2.5"))

        assert outcome.succeeded is True
        assert outcome.transaction_hash is not None
        assert outcome.secondary is not None and outcome.secondary.ok is True
        assert outcome.linkage_warning is None
        assert world.sandbox.balance_of(scope=_DONOR_SCOPE) == 750
        assert world.sandbox.balance_of(scope=_RECIPIENT_SCOPE) == 250
        assert await world.campaigns.donation_hashes(campaign_address=_CAMPAIGN) == (
            outcome.transaction_hash,
        )
        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.SUCCESS
        snapshot = world.balances.snapshot(_DONOR_SCOPE)
        assert snapshot is not None and snapshot.decrypted == 750

        recipient = await world.coordinator.require_ready(_RECIPIENT_SCOPE)
        result = await recipient.balance.decrypt_message(
            transaction_hash=outcome.transaction_hash
        )
        decoded = decode_donation(result.decrypted_message)
        assert decoded.text == "Keep going"
        assert decoded.campaign_address is not None
        assert decoded.campaign_address.lower() == _CAMPAIGN
        assert world.events == [("succeeded", "donation")]

        world.orchestrator.reset(_DONOR_SCOPE)
        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.FORM

    asyncio.run(_scenario())


def test_donation_with_non_address_reference_skips_linkage() -> None:
    async def _scenario() -> None:
        world = await _ready_world()

        outcome = await world.orchestrator.donate(
            _request(campaign_reference="community-garden", message="")
        )

        assert outcome.succeeded is True
        assert outcome.secondary is None
        assert world.campaigns.link_calls == 0

    asyncio.run(_scenario())


def test_linkage_failure_keeps_successful_transfer_with_warning() -> None:
    """
    Verify campaign linkage failure never turns the donation into an error.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Transfer is final once submitted; linkage is best-effort bookkeeping.
    Raises:
        AssertionError: If linkage failure hides the transfer result.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        world = await _ready_world()
        world.campaigns.link_failure = RuntimeError("campaign paused")

        outcome = await world.orchestrator.donate(_request("1"))

        assert outcome.succeeded is True
        assert outcome.transaction_hash is not None
        assert outcome.linkage_warning == (
            "Transfer succeeded but campaign linkage failed. (campaign paused)"
        )
        assert world.sandbox.balance_of(scope=_DONOR_SCOPE) == 900
        assert ("linkage_failed", "donation") in world.events
        assert ("succeeded", "donation") in world.events

    asyncio.run(_scenario())


@pytest.mark.parametrize(
    ("transfer_error", "expected_code", "expected_message"),
    [
        (
            RuntimeError("User rejected the request."),
            "transfer_rejected",
            "Transaction was rejected.",
        ),
        (RuntimeError("nonce too low"), "transfer_failed", "nonce too low"),
    ],
)
def test_transfer_errors_are_classified(
    transfer_error: Exception,
    expected_code: str,
    expected_message: str,
) -> None:
    async def _scenario() -> None:
        world = await _ready_world()
        world.gateway.transfer_error = transfer_error

        outcome = await world.orchestrator.donate(_request("1"))

        assert outcome.succeeded is False
        assert outcome.error is not None
        assert outcome.error.code == expected_code
        assert outcome.error.message == expected_message
        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.ERROR
        assert world.guard.is_in_flight(_DONOR_SCOPE) is False
        assert world.sandbox.balance_of(scope=_DONOR_SCOPE) == 1_000

    asyncio.run(_scenario())


def test_second_donation_while_first_is_processing_is_rejected() -> None:
    """
    Verify one in-flight transfer per scope; the second request is rejected, not queued.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Identical requests are still independent transfers once the first completes.
    Raises:
        AssertionError: If two transfers run concurrently for one scope.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        world = await _ready_world()
        world.gateway.transfer_gate = asyncio.Event()
        world.gateway.transfer_entered = asyncio.Event()

        first = asyncio.ensure_future(world.orchestrator.donate(_request("1")))
        await world.gateway.transfer_entered.wait()
        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.PROCESSING

        second = await world.orchestrator.donate(_request("1"))
        assert second.error is not None
        assert second.error.code == "operation_in_progress"
        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.PROCESSING

        world.gateway.transfer_gate.set()
        first_outcome = await first
        assert first_outcome.succeeded is True

        third = await world.orchestrator.donate(_request("1"))
        assert third.succeeded is True
        assert third.transaction_hash != first_outcome.transaction_hash
        assert world.sandbox.balance_of(scope=_DONOR_SCOPE) == 800

    asyncio.run(_scenario())


def test_overlapping_donation_cannot_spend_balance_checked_before_first_settles() -> None:
    """
    Verify a donation overlapping another one never transfers on a stale balance check.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Scope is claimed before validation reads balance or decimals.
    Raises:
        AssertionError: If the overlapping request reaches `private_transfer`.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        world = await _ready_world(donor_balance=1_000)
        world.gateway.transfer_gate = asyncio.Event()
        world.gateway.transfer_entered = asyncio.Event()

        first = asyncio.ensure_future(world.orchestrator.donate(_request("8")))
        await world.gateway.transfer_entered.wait()

        world.gateway.decimals_entered = asyncio.Event()
        overlapping = await world.orchestrator.donate(_request("8"))
        assert overlapping.error is not None
        assert overlapping.error.code == "operation_in_progress"
        assert world.gateway.decimals_entered.is_set() is False

        world.gateway.transfer_gate.set()
        assert (await first).succeeded is True
        assert world.sandbox.message_count() == 1

        later = await world.orchestrator.donate(_request("8"))
        assert later.error is not None
        assert later.error.code == "insufficient_balance"
        assert world.sandbox.message_count() == 1
        assert world.sandbox.balance_of(scope=_DONOR_SCOPE) == 200
        assert world.guard.is_in_flight(_DONOR_SCOPE) is False

    asyncio.run(_scenario())


def test_donation_is_rejected_while_another_one_is_still_validating() -> None:
    async def _scenario() -> None:
        world = await _ready_world()
        world.gateway.decimals_gate = asyncio.Event()
        world.gateway.decimals_entered = asyncio.Event()

        first = asyncio.ensure_future(world.orchestrator.donate(_request("1")))
        await world.gateway.decimals_entered.wait()

        second = await world.orchestrator.donate(_request("1"))
        assert second.error is not None
        assert second.error.code == "operation_in_progress"
        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.VALIDATING

        world.gateway.decimals_gate.set()
        assert (await first).succeeded is True
        assert world.sandbox.message_count() == 1
        assert ("failed", "donation", "operation_in_progress") in world.events

    asyncio.run(_scenario())


def test_cancellation_before_transfer_restores_form_state() -> None:
    async def _scenario() -> None:
        world = await _ready_world()
        world.gateway.decimals_gate = asyncio.Event()
        world.gateway.decimals_entered = asyncio.Event()

        pending = asyncio.ensure_future(world.orchestrator.donate(_request("1")))
        await world.gateway.decimals_entered.wait()
        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.VALIDATING
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.FORM
        assert world.guard.is_in_flight(_DONOR_SCOPE) is False
        assert world.sandbox.message_count() == 0

    asyncio.run(_scenario())


def test_cancellation_after_transfer_started_still_completes_operation() -> None:
    """
    Verify a caller disconnect after transfer start neither aborts nor leaks the guard.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Transfer submission cannot be recalled, so the flow runs to its terminal state.
    Raises:
        AssertionError: If the flow stops mid-way or stays processing.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        world = await _ready_world()
        world.gateway.transfer_gate = asyncio.Event()
        world.gateway.transfer_entered = asyncio.Event()

        pending = asyncio.ensure_future(world.orchestrator.donate(_request("1")))
        await world.gateway.transfer_entered.wait()
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        world.gateway.transfer_gate.set()
        for _ in range(100):
            if world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.SUCCESS:
                break
            await asyncio.sleep(0)

        assert world.orchestrator.state_for(_DONOR_SCOPE) is FlowState.SUCCESS
        assert world.guard.is_in_flight(_DONOR_SCOPE) is False
        assert world.sandbox.message_count() == 1
        assert len(await world.campaigns.donation_hashes(campaign_address=_CAMPAIGN)) == 1

    asyncio.run(_scenario())
