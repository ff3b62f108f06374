from __future__ import annotations

import logging

from shadowflow.contexts.donations.application.ports import CampaignLedger, WalletSession
from shadowflow.contexts.donations.domain import DonationRecord
from shadowflow.contexts.wallet_keys.application.services import RegistrationCoordinator
from shadowflow.platform.errors import (
    HistoryUnavailableError,
    InvalidRecipientError,
    describe_sdk_error,
)
from shadowflow.shared_kernel.primitives import is_wallet_address

from .donation_history_decryptor import DonationHistoryDecryptor
from .wallet_scope import resolve_active_scope

log = logging.getLogger(__name__)


class DonationHistoryService:
    """
    DonationHistoryService — loads campaign donation index and decrypts it for the caller.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/donation_history_decryptor.py
      - src/shadowflow/contexts/donations/application/ports/campaign_ledger.py
      - apps/api/routes/campaigns.py
    """

    def __init__(
        self,
        *,
        coordinator: RegistrationCoordinator,
        wallet: WalletSession,
        ledger: CampaignLedger,
        decryptor: DonationHistoryDecryptor,
        expected_chain_id: int | None = None,
    ) -> None:
        """
        Initialize history service collaborators.

        Args:
            coordinator: Registration coordinator providing the ready SDK capability.
            wallet: Wallet session port.
            ledger: Campaign donation index.
            decryptor: Per-item decryptor.
            expected_chain_id: Required network, or `None` to accept any.
        Returns:
            None.
        Assumptions:
            Only parties of a transfer can decrypt it; others get sentinel records.
        Raises:
            ValueError: If one of collaborators is missing.
        Side Effects:
            None.
        """
        if coordinator is None:  # type: ignore[truthy-bool]
            raise ValueError("DonationHistoryService requires coordinator")
        if wallet is None:  # type: ignore[truthy-bool]
            raise ValueError("DonationHistoryService requires wallet")
        if ledger is None:  # type: ignore[truthy-bool]
            raise ValueError("DonationHistoryService requires ledger")
        if decryptor is None:  # type: ignore[truthy-bool]
            raise ValueError("DonationHistoryService requires decryptor")
        self._coordinator = coordinator
        self._wallet = wallet
        self._ledger = ledger
        self._decryptor = decryptor
        self._expected_chain_id = expected_chain_id

    async def get_history(self, campaign_address: str) -> tuple[DonationRecord, ...]:
        """
        Return decrypted donation history of a campaign, newest first.

        Args:
            campaign_address: Campaign contract address.
        Returns:
            tuple[DonationRecord, ...]: One record per indexed donation.
        Assumptions:
            Index order is preserved for records with equal timestamps.
        Raises:
            InvalidRecipientError: If campaign address is malformed.
            WalletNotConnectedError: If no wallet is connected.
            SdkNotInitializedError: If SDK is not initialized.
            KeyMissingError: If no key is stored.
            NotRegisteredError: If wallet is not registered.
            HistoryUnavailableError: If the donation index cannot be read.
        Side Effects:
            One index read and one decrypt call per donation.
        """
        normalized = self._require_campaign(campaign_address)
        scope = resolve_active_scope(self._wallet, expected_chain_id=self._expected_chain_id)
        capability = await self._coordinator.require_ready(scope)
        try:
            hashes = await self._ledger.donation_hashes(campaign_address=normalized)
        except Exception as error:
            log.warning("donation index read failed for campaign %s: %s", normalized, error)
            raise HistoryUnavailableError(
                describe_sdk_error(error, fallback=HistoryUnavailableError.default_message)
            ) from error
        return await self._decryptor.decrypt_all(
            balance=capability.balance,
            transaction_hashes=tuple(hashes),
            campaign_address=normalized,
        )

    async def withdrawal_hashes(self, campaign_address: str) -> tuple[str, ...]:
        normalized = self._require_campaign(campaign_address)
        try:
            return tuple(await self._ledger.withdrawal_hashes(campaign_address=normalized))
        except Exception as error:
            log.warning("withdrawal index read failed for campaign %s: %s", normalized, error)
            raise HistoryUnavailableError(
                describe_sdk_error(error, fallback="Failed to load withdrawal history.")
            ) from error

    def _require_campaign(self, campaign_address: str) -> str:
        normalized = campaign_address.strip()
        if not is_wallet_address(normalized):
            raise InvalidRecipientError("Invalid campaign address.")
        return normalized
