from __future__ import annotations

from typing import Protocol


class CampaignLedger(Protocol):
    """
    CampaignLedger — campaign contract bookkeeping of private transfer hashes.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/donation_orchestrator.py
      - src/shadowflow/contexts/donations/application/services/donation_history_service.py
      - src/shadowflow/contexts/donations/adapters/outbound/persistence/in_memory/
        in_memory_campaign_ledger.py
    """

    async def register_donation(self, *, campaign_address: str, transaction_hash: str) -> None:
        """
        Link a completed private transfer to a campaign.

        Args:
            campaign_address: Campaign contract address.
            transaction_hash: Private transfer transaction hash.
        Returns:
            None.
        Assumptions:
            Linkage is bookkeeping only; the transfer is already final.
        Raises:
            Exception: Any contract or network failure.
        Side Effects:
            Submits one campaign contract transaction.
        """
        ...

    async def register_withdrawal(self, *, campaign_address: str, transaction_hash: str) -> None:
        ...

    async def donation_hashes(self, *, campaign_address: str) -> tuple[str, ...]:
        ...

    async def withdrawal_hashes(self, *, campaign_address: str) -> tuple[str, ...]:
        ...
