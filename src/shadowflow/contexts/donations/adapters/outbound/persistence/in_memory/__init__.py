from .in_memory_campaign_ledger import InMemoryCampaignLedger

__all__ = ["InMemoryCampaignLedger"]
