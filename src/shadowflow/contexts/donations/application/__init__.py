from .ports import CampaignLedger, DonationsClock, WalletSession
from .services import (
    BalanceService,
    CampaignImageIndex,
    DonationHistoryDecryptor,
    DonationHistoryService,
    DonationOrchestrator,
    DonationRequest,
    PrivateOperationHooks,
    WithdrawalOrchestrator,
    WithdrawalRequest,
)

__all__ = [
    "BalanceService",
    "CampaignImageIndex",
    "CampaignLedger",
    "DonationHistoryDecryptor",
    "DonationHistoryService",
    "DonationOrchestrator",
    "DonationRequest",
    "DonationsClock",
    "PrivateOperationHooks",
    "WalletSession",
    "WithdrawalOrchestrator",
    "WithdrawalRequest",
]
