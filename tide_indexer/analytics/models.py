"""
Type definitions for the cached rollup statistics.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Claim:
    """A single participation, as shown in the recent claims feed."""

    campaign: str  # Campaign title
    project: Optional[str]
    address: str  # Recipient
    date: Optional[datetime]
    link: str  # Explorer page of the recipient
    token_id: Optional[str]
    network: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign": self.campaign,
            "project": self.project,
            "address": self.address,
            "date": self.date.isoformat() if self.date else None,
            "link": self.link,
            "tokenId": self.token_id,
            "network": self.network,
        }


@dataclass(frozen=True)
class Stats:
    """
    Rollup over every cached campaign.

    Serialized under the ``stats`` key with camelCase field names.
    """

    campaign_ids: List[str] = field(default_factory=list)
    total_participations: int = 0
    unique_users: int = 0
    last_20_claims: List[Claim] = field(default_factory=list)
    top_10_campaigns: List[Dict[str, Any]] = field(default_factory=list)
    calculated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaignIds": list(self.campaign_ids),
            "totalParticipations": self.total_participations,
            "uniqueUsers": self.unique_users,
            "last20ClaimsSortedByDate": [c.to_dict() for c in self.last_20_claims],
            "top10CampaignsSortedByParticipants": list(self.top_10_campaigns),
            "calculatedAt": (
                self.calculated_at.isoformat() if self.calculated_at else None
            ),
        }
