from .persistence import InMemoryCampaignLedger
from .wallet import InMemoryWalletSession

__all__ = [
    "InMemoryCampaignLedger",
    "InMemoryWalletSession",
]
