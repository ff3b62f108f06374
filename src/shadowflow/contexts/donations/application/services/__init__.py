from .balance_service import BalanceService
from .campaign_image_index import (
    DEFAULT_RETENTION_DAYS,
    IMAGE_ENTRY_PREFIX,
    TEMP_ENTRY_PREFIX,
    CampaignImage,
    CampaignImageIndex,
)
from .deposit_orchestrator import DepositOrchestrator, DepositRequest
from .donation_history_decryptor import DonationHistoryDecryptor
from .donation_history_service import DonationHistoryService
from .donation_orchestrator import DonationOrchestrator, DonationRequest
from .operation_hooks import PrivateOperationHooks
from .private_operation_flow import FundedOperation, PrivateOperationFlow
from .wallet_scope import resolve_active_scope
from .withdrawal_orchestrator import MaxWithdrawal, WithdrawalOrchestrator, WithdrawalRequest

__all__ = [
    "BalanceService",
    "CampaignImage",
    "CampaignImageIndex",
    "DEFAULT_RETENTION_DAYS",
    "DepositOrchestrator",
    "DepositRequest",
    "DonationHistoryDecryptor",
    "DonationHistoryService",
    "DonationOrchestrator",
    "DonationRequest",
    "FundedOperation",
    "IMAGE_ENTRY_PREFIX",
    "MaxWithdrawal",
    "PrivateOperationFlow",
    "PrivateOperationHooks",
    "TEMP_ENTRY_PREFIX",
    "WithdrawalOrchestrator",
    "WithdrawalRequest",
    "resolve_active_scope",
]
