from __future__ import annotations

import asyncio

import pytest

from shadowflow.contexts.donations.adapters.outbound import (
    InMemoryCampaignLedger,
    InMemoryWalletSession,
)
from shadowflow.shared_kernel.primitives import OperatingMode

_CAMPAIGN = "0xabcdef0123456789abcdef0123456789abcdef01"


def test_in_memory_wallet_session_connect_normalizes_address_and_switches_mode() -> None:
    session = InMemoryWalletSession()

    session.connect(
        address="0xAbCdEf0123456789aBcDeF0123456789AbCdEf01",
        chain_id=43113,
        mode=OperatingMode.CONVERTER,
    )

    address = session.connected_address()
    assert address is not None
    assert address.value == "0xabcdef0123456789abcdef0123456789abcdef01"
    assert session.chain_id() == 43113
    assert session.mode() is OperatingMode.CONVERTER


def test_in_memory_wallet_session_rejects_bad_input_without_replacing_session() -> None:
    session = InMemoryWalletSession()
    session.connect(address="0x1111111111111111111111111111111111111111", chain_id=1)

    with pytest.raises(ValueError):
        session.connect(address="0x12", chain_id=1)
    with pytest.raises(ValueError, match="chain_id"):
        session.connect(address="0x2222222222222222222222222222222222222222", chain_id=0)

    address = session.connected_address()
    assert address is not None
    assert address.value == "0x1111111111111111111111111111111111111111"


def test_in_memory_wallet_session_disconnect_keeps_mode() -> None:
    session = InMemoryWalletSession(mode=OperatingMode.CONVERTER)
    session.connect(address="0x1111111111111111111111111111111111111111", chain_id=1)

    session.disconnect()

    assert session.connected_address() is None
    assert session.chain_id() is None
    assert session.mode() is OperatingMode.CONVERTER


def test_in_memory_campaign_ledger_indexes_hashes_case_insensitively() -> None:
    """
    Verify donations and withdrawals are indexed separately per campaign, in append order.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Campaign addresses compare case-insensitively.
    Raises:
        AssertionError: If index contents or order are wrong.
    Side Effects:
        None.
    """

    async def _scenario() -> None:
        ledger = InMemoryCampaignLedger()
        await ledger.register_donation(campaign_address=_CAMPAIGN, transaction_hash="0xa")
        await ledger.register_donation(
            campaign_address=_CAMPAIGN.upper().replace("0X", "0x"),
            transaction_hash="0xb",
        )
        await ledger.register_withdrawal(campaign_address=_CAMPAIGN, transaction_hash="0xc")

        assert await ledger.donation_hashes(campaign_address=_CAMPAIGN) == ("0xa", "0xb")
        assert await ledger.withdrawal_hashes(campaign_address=_CAMPAIGN) == ("0xc",)
        assert ledger.link_calls == 3

    asyncio.run(_scenario())


def test_in_memory_campaign_ledger_raises_configured_failures() -> None:
    async def _scenario() -> None:
        ledger = InMemoryCampaignLedger()
        ledger.link_failure = RuntimeError("paused")
        ledger.read_failure = RuntimeError("rpc timeout")

        with pytest.raises(RuntimeError, match="paused"):
            await ledger.register_donation(campaign_address=_CAMPAIGN, transaction_hash="0xa")
        with pytest.raises(RuntimeError, match="rpc timeout"):
            await ledger.donation_hashes(campaign_address=_CAMPAIGN)

    asyncio.run(_scenario())
