from __future__ import annotations

from shadowflow.contexts.donations.application.ports import CampaignLedger


class InMemoryCampaignLedger(CampaignLedger):
    """
    InMemoryCampaignLedger — process-local campaign donation/withdrawal index.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/ports/campaign_ledger.py
      - apps/api/wiring/modules/shadowflow.py
      - tests/unit/contexts/donations/application/test_donation_orchestrator.py
    """

    def __init__(self) -> None:
        """
        Initialize empty per-campaign hash lists.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Campaign addresses are compared case-insensitively.
            `link_failure` and `read_failure` model contract/network outages when set.
        Raises:
            None.
        Side Effects:
            Creates mutable in-memory state.
        """
        self._donations: dict[str, list[str]] = {}
        self._withdrawals: dict[str, list[str]] = {}
        self.link_failure: Exception | None = None
        self.read_failure: Exception | None = None
        self.link_calls = 0

    async def register_donation(self, *, campaign_address: str, transaction_hash: str) -> None:
        self._append(self._donations, campaign_address, transaction_hash)

    async def register_withdrawal(self, *, campaign_address: str, transaction_hash: str) -> None:
        self._append(self._withdrawals, campaign_address, transaction_hash)

    async def donation_hashes(self, *, campaign_address: str) -> tuple[str, ...]:
        return self._read(self._donations, campaign_address)

    async def withdrawal_hashes(self, *, campaign_address: str) -> tuple[str, ...]:
        return self._read(self._withdrawals, campaign_address)

    def _append(self, index: dict[str, list[str]], campaign_address: str, tx_hash: str) -> None:
        self.link_calls += 1
        if self.link_failure is not None:
            raise self.link_failure
        index.setdefault(campaign_address.strip().lower(), []).append(tx_hash)

    def _read(self, index: dict[str, list[str]], campaign_address: str) -> tuple[str, ...]:
        if self.read_failure is not None:
            raise self.read_failure
        return tuple(index.get(campaign_address.strip().lower(), ()))
