from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from shadowflow.contexts.donations.application.ports import DonationsClock
from shadowflow.contexts.donations.domain import (
    DECRYPTION_FAILED_MESSAGE,
    UNKNOWN_DONOR,
    DonationRecord,
    decode_donation,
)
from shadowflow.contexts.privacy_sdk.application.ports import EncryptedBalancePrimitive

from .operation_hooks import PrivateOperationHooks

log = logging.getLogger(__name__)


class DonationHistoryDecryptor:
    """
    Decrypts campaign donation messages independently and returns newest-first records.

    Parameters:
    - clock: UTC clock used when the primitive reports no block timestamp.
    - max_concurrency: upper bound of simultaneous decrypt calls.
    - hooks: optional metrics callbacks.

    Assumptions/Invariants:
    - Output length always equals input length; failures become sentinel records.
    - One failing item never aborts the others, sequential or concurrent.
    - Sorting is stable, so equal timestamps keep index order.
    """

    def __init__(
        self,
        *,
        clock: DonationsClock,
        max_concurrency: int = 8,
        hooks: PrivateOperationHooks | None = None,
    ) -> None:
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("DonationHistoryDecryptor requires clock")
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")
        self._clock = clock
        self._max_concurrency = max_concurrency
        self._hooks = hooks if hooks is not None else PrivateOperationHooks()

    async def decrypt_all(
        self,
        *,
        balance: EncryptedBalancePrimitive,
        transaction_hashes: Sequence[str],
        campaign_address: str | None = None,
    ) -> tuple[DonationRecord, ...]:
        """
        Decrypt every referenced transfer message.

        Parameters:
        - balance: encrypted-balance primitive resolved with the caller's key.
        - transaction_hashes: ordered hashes from the campaign donation index.
        - campaign_address: campaign used for sentinel records.

        Returns:
        - Records sorted by timestamp descending.

        Assumptions/Invariants:
        - Decryption calls run concurrently, bounded by `max_concurrency`.

        Errors/Exceptions:
        - None for per-item failures.

        Side effects:
        - One external decrypt call per hash.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(tx_hash: str) -> DonationRecord:
            async with semaphore:
                return await self._decrypt_one(
                    balance=balance,
                    tx_hash=tx_hash,
                    campaign_address=campaign_address,
                )

        records = await asyncio.gather(*(bounded(tx_hash) for tx_hash in transaction_hashes))
        return tuple(sorted(records, key=lambda record: record.timestamp, reverse=True))

    async def _decrypt_one(
        self,
        *,
        balance: EncryptedBalancePrimitive,
        tx_hash: str,
        campaign_address: str | None,
    ) -> DonationRecord:
        try:
            result = await balance.decrypt_message(transaction_hash=tx_hash)
        except Exception as error:
            log.warning("failed to decrypt donation message for tx %s: %s", tx_hash, error)
            if self._hooks.on_history_item_failed is not None:
                self._hooks.on_history_item_failed()
            return DonationRecord(
                tx_hash=tx_hash,
                donor=UNKNOWN_DONOR,
                message=DECRYPTION_FAILED_MESSAGE,
                timestamp=self._clock.now(),
                campaign_address=campaign_address,
                decryption_failed=True,
            )

        decoded = decode_donation(result.decrypted_message)
        return DonationRecord(
            tx_hash=tx_hash,
            donor=result.message_from,
            message=decoded.text,
            timestamp=result.timestamp if result.timestamp is not None else self._clock.now(),
            campaign_address=decoded.campaign_address,
        )
