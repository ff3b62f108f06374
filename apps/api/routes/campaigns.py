"""
Campaign donation history and campaign image API routes.

Docs:
  - docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from shadowflow.contexts.donations.application.services import (
    CampaignImage,
    CampaignImageIndex,
    DonationHistoryService,
)
from shadowflow.contexts.donations.domain import DonationRecord
from shadowflow.platform.errors import InvalidRecipientError
from shadowflow.shared_kernel.primitives import is_wallet_address


class DonationRecordResponse(BaseModel):
    """
    DonationRecordResponse — one decrypted campaign donation.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/donation_history_decryptor.py
    """

    tx_hash: str
    donor: str
    message: str
    timestamp: datetime
    campaign_address: str | None
    decryption_failed: bool


class CampaignWithdrawalsResponse(BaseModel):
    transaction_hashes: list[str]


class CampaignImageRequest(BaseModel):
    image_hash: str = Field(min_length=1)


class TemporaryImageRequest(BaseModel):
    tx_hash: str = Field(min_length=1)
    image_hash: str = Field(min_length=1)


class PromoteImageRequest(BaseModel):
    tx_hash: str = Field(min_length=1)


class CampaignImageResponse(BaseModel):
    campaign_address: str
    image_hash: str | None
    stored_at: datetime | None


class PromoteImageResponse(BaseModel):
    promoted: bool


class ImageCleanupResponse(BaseModel):
    removed: int


def build_campaigns_router(
    *,
    history: DonationHistoryService,
    images: CampaignImageIndex,
) -> APIRouter:
    """
    Build router exposing campaign history and local image index endpoints.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/donation_history_service.py
      - src/shadowflow/contexts/donations/application/services/campaign_image_index.py
      - apps/api/wiring/modules/shadowflow.py

    Args:
        history: Donation history service.
        images: Local campaign image index.
    Returns:
        APIRouter: Configured campaigns router.
    Assumptions:
        Only parties of a transfer can decrypt it; other items come back as failed records.
    Raises:
        ValueError: If required dependencies are missing.
    Side Effects:
        None.
    """
    if history is None:  # type: ignore[truthy-bool]
        raise ValueError("build_campaigns_router requires history")
    if images is None:  # type: ignore[truthy-bool]
        raise ValueError("build_campaigns_router requires images")

    router = APIRouter(prefix="/campaigns", tags=["campaigns"])

    @router.get("/{campaign_address}/donations", response_model=list[DonationRecordResponse])
    async def get_campaign_donations(campaign_address: str) -> list[DonationRecordResponse]:
        records = await history.get_history(campaign_address)
        return [_to_record_response(record=record) for record in records]

    @router.get("/{campaign_address}/withdrawals", response_model=CampaignWithdrawalsResponse)
    async def get_campaign_withdrawals(campaign_address: str) -> CampaignWithdrawalsResponse:
        hashes = await history.withdrawal_hashes(campaign_address)
        return CampaignWithdrawalsResponse(transaction_hashes=list(hashes))

    @router.get("/{campaign_address}/image", response_model=CampaignImageResponse)
    async def get_campaign_image(campaign_address: str) -> CampaignImageResponse:
        normalized = _require_campaign(campaign_address)
        found = images.image_for(normalized)
        if found is None:
            return CampaignImageResponse(
                campaign_address=normalized.lower(),
                image_hash=None,
                stored_at=None,
            )
        return _to_image_response(image=found)

    @router.put("/{campaign_address}/image", response_model=CampaignImageResponse)
    async def put_campaign_image(
        campaign_address: str,
        request: CampaignImageRequest,
    ) -> CampaignImageResponse:
        stored = images.store_image(_require_campaign(campaign_address), request.image_hash)
        return _to_image_response(image=stored)

    @router.post("/images/temporary", status_code=204, response_model=None)
    async def post_temporary_image(request: TemporaryImageRequest) -> None:
        images.store_temporary(request.tx_hash, request.image_hash)

    @router.post("/{campaign_address}/image/promote", response_model=PromoteImageResponse)
    async def post_promote_image(
        campaign_address: str,
        request: PromoteImageRequest,
    ) -> PromoteImageResponse:
        promoted = images.promote_temporary(request.tx_hash, _require_campaign(campaign_address))
        return PromoteImageResponse(promoted=promoted)

    @router.post("/images/cleanup", response_model=ImageCleanupResponse)
    async def post_images_cleanup() -> ImageCleanupResponse:
        return ImageCleanupResponse(removed=images.cleanup_expired())

    return router


def _require_campaign(campaign_address: str) -> str:
    normalized = campaign_address.strip()
    if not is_wallet_address(normalized):
        raise InvalidRecipientError("Invalid campaign address.")
    return normalized


def _to_record_response(*, record: DonationRecord) -> DonationRecordResponse:
    return DonationRecordResponse(
        tx_hash=record.tx_hash,
        donor=record.donor,
        message=record.message,
        timestamp=record.timestamp,
        campaign_address=record.campaign_address,
        decryption_failed=record.decryption_failed,
    )


def _to_image_response(*, image: CampaignImage) -> CampaignImageResponse:
    return CampaignImageResponse(
        campaign_address=image.campaign_address,
        image_hash=image.image_hash,
        stored_at=image.stored_at,
    )
