from .in_memory import InMemoryCampaignLedger

__all__ = ["InMemoryCampaignLedger"]
