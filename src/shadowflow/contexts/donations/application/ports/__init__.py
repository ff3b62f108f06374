from .campaign_ledger import CampaignLedger
from .clock import DonationsClock
from .wallet_session import WalletSession

__all__ = [
    "CampaignLedger",
    "DonationsClock",
    "WalletSession",
]
