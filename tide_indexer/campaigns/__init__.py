from tide_indexer.campaigns.models import (
    Campaign,
    CampaignStatus,
    get_campaign_status,
)

__all__ = ["Campaign", "CampaignStatus", "get_campaign_status"]
