from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from shadowflow.contexts.donations.application.ports import DonationsClock
from shadowflow.contexts.wallet_keys.application.ports import LocalKeyValueStore

log = logging.getLogger(__name__)

IMAGE_ENTRY_PREFIX = "campaign-image:"
TEMP_ENTRY_PREFIX = "temp:"
DEFAULT_RETENTION_DAYS = 30


@dataclass(frozen=True, slots=True)
class CampaignImage:
    campaign_address: str
    image_hash: str
    stored_at: datetime


class CampaignImageIndex:
    """
    Local index of campaign image hashes kept beside the campaign contracts.

    Parameters:
    - storage: local key-value store shared with the key store.
    - clock: UTC clock for entry timestamps and retention.
    - retention_days: default age after which entries are cleaned up.

    Assumptions/Invariants:
    - Entries are `campaign-image:{campaign}` and `temp:{txHash}` with JSON
      `{"imageHash": ..., "timestamp": <epoch ms>}` payloads.
    - Unreadable entries are treated as absent on read and removed on cleanup.
    """

    def __init__(
        self,
        *,
        storage: LocalKeyValueStore,
        clock: DonationsClock,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        if storage is None:  # type: ignore[truthy-bool]
            raise ValueError("CampaignImageIndex requires storage")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("CampaignImageIndex requires clock")
        if retention_days <= 0:
            raise ValueError("retention_days must be > 0")
        self._storage = storage
        self._clock = clock
        self._retention_days = retention_days

    def store_image(self, campaign_address: str, image_hash: str) -> CampaignImage:
        """
        Store or replace image hash of a campaign.

        Parameters:
        - campaign_address: campaign contract address.
        - image_hash: content hash of the uploaded image.

        Returns:
        - Stored entry.

        Assumptions/Invariants:
        - Campaign key is lower-cased so lookups are case-insensitive.

        Errors/Exceptions:
        - Raises `ValueError` when campaign or image hash is blank.

        Side effects:
        - Writes one local entry.
        """
        campaign = _normalize_campaign(campaign_address)
        normalized_hash = _require_non_blank(image_hash, "image_hash")
        stored_at = self._clock.now()
        self._storage.set(IMAGE_ENTRY_PREFIX + campaign, _dump_entry(normalized_hash, stored_at))
        return CampaignImage(
            campaign_address=campaign,
            image_hash=normalized_hash,
            stored_at=stored_at,
        )

    def image_for(self, campaign_address: str) -> CampaignImage | None:
        campaign = _normalize_campaign(campaign_address)
        raw = self._storage.get(IMAGE_ENTRY_PREFIX + campaign)
        if raw is None:
            return None
        parsed = _load_entry(raw)
        if parsed is None:
            log.warning("ignoring unreadable image entry for campaign %s", campaign)
            return None
        return CampaignImage(campaign_address=campaign, image_hash=parsed[0], stored_at=parsed[1])

    def remove_image(self, campaign_address: str) -> bool:
        return self._storage.delete(IMAGE_ENTRY_PREFIX + _normalize_campaign(campaign_address))

    def all_images(self) -> dict[str, str]:
        images: dict[str, str] = {}
        for entry_name in self._storage.keys(IMAGE_ENTRY_PREFIX):
            found = self.image_for(entry_name[len(IMAGE_ENTRY_PREFIX) :])
            if found is not None:
                images[found.campaign_address] = found.image_hash
        return images

    def cleanup_expired(self, retention_days: int | None = None) -> int:
        """
        Remove image entries older than retention and unreadable ones.

        Parameters:
        - retention_days: override of configured retention.

        Returns:
        - Number of removed entries.

        Assumptions/Invariants:
        - Temporary entries are not touched by cleanup.

        Errors/Exceptions:
        - Raises `ValueError` when retention is not positive.

        Side effects:
        - Deletes local entries.
        """
        days = self._retention_days if retention_days is None else retention_days
        if days <= 0:
            raise ValueError("retention_days must be > 0")
        cutoff = self._clock.now() - timedelta(days=days)
        removed = 0
        for entry_name in self._storage.keys(IMAGE_ENTRY_PREFIX):
            raw = self._storage.get(entry_name)
            parsed = _load_entry(raw) if raw is not None else None
            if parsed is None or parsed[1] < cutoff:
                if self._storage.delete(entry_name):
                    removed += 1
        if removed:
            log.info("removed %s expired campaign image entries", removed)
        return removed

    def store_temporary(self, tx_hash: str, image_hash: str) -> None:
        key = TEMP_ENTRY_PREFIX + _require_non_blank(tx_hash, "tx_hash").lower()
        normalized_hash = _require_non_blank(image_hash, "image_hash")
        self._storage.set(key, _dump_entry(normalized_hash, self._clock.now()))

    def promote_temporary(self, tx_hash: str, campaign_address: str) -> bool:
        """
        Move a temporary image entry to its campaign once the campaign address is known.

        Parameters:
        - tx_hash: campaign creation transaction hash used as temporary key.
        - campaign_address: deployed campaign contract address.

        Returns:
        - `True` when an entry was promoted.

        Assumptions/Invariants:
        - Unreadable temporary entries are left in place and reported as not promoted.

        Errors/Exceptions:
        - Raises `ValueError` for blank inputs.

        Side effects:
        - Writes campaign entry and deletes temporary entry.
        """
        key = TEMP_ENTRY_PREFIX + _require_non_blank(tx_hash, "tx_hash").lower()
        raw = self._storage.get(key)
        if raw is None:
            return False
        parsed = _load_entry(raw)
        if parsed is None:
            log.warning("cannot promote unreadable temporary image entry %s", key)
            return False
        self.store_image(campaign_address, parsed[0])
        self._storage.delete(key)
        return True


def _normalize_campaign(campaign_address: str) -> str:
    return _require_non_blank(campaign_address, "campaign_address").lower()


def _require_non_blank(value: str, name: str) -> str:
    normalized = (value or "").strip()
    if not normalized:
        raise ValueError(f"{name} must be non-empty")
    return normalized


def _dump_entry(image_hash: str, stored_at: datetime) -> str:
    timestamp_ms = int(stored_at.timestamp() * 1000)
    return json.dumps({"imageHash": image_hash, "timestamp": timestamp_ms}, separators=(",", ":"))


def _load_entry(raw: str) -> tuple[str, datetime] | None:
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    image_hash = payload.get("imageHash")
    timestamp_ms = payload.get("timestamp")
    if not isinstance(image_hash, str) or not image_hash:
        return None
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, (int, float)):
        return None
    return image_hash, datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
