"""
Stats aggregation over the cache.

Runs after every indexing cycle and publishes a single JSON document under
the ``stats`` key for the frontend:
- every cached campaign id
- total participations (sum of transfers:length:* counters)
- unique recipients across all campaigns
- the 20 most recent claims
- the 10 campaigns with the most participants
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from tide_indexer.analytics.models import Claim, Stats
from tide_indexer.campaigns.models import get_campaign_status, parse_datetime
from tide_indexer.shared.constants import IndexerConstants
from tide_indexer.shared.exceptions import ConfigurationException, ParseError
from tide_indexer.shared.logging import get_logger
from tide_indexer.shared.services.cache_service import CacheStore
from tide_indexer.utils.blockchain import explorer_address_url, parse_quantity

RECENT_CLAIMS = 20
TOP_CAMPAIGNS = 10


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_claim_date(timestamp: Any) -> Optional[datetime]:
    """
    Decode a transfer timestamp (hex string, decimal string or epoch int).

    Returns None when the value cannot be decoded.
    """
    if timestamp is None:
        return None
    try:
        seconds = parse_quantity(timestamp)
    except ValueError:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class StatsAggregator:
    """Computes the rollup statistics from cached campaigns and transfers."""

    def __init__(
        self,
        cache: CacheStore,
        clock: Callable[[], datetime] = _utc_now,
        logger: Optional[logging.Logger] = None,
    ):
        self.cache = cache
        self.clock = clock
        self.logger = logger or get_logger(__name__)

    async def load_campaigns(self) -> List[Dict[str, Any]]:
        campaigns = []
        for key in await self.cache.campaign_keys():
            campaigns.extend(await self.cache.get_campaign_dicts(key))
        return campaigns

    async def collect_claims(self, campaigns: List[Dict[str, Any]]) -> List[Claim]:
        claims = []
        for campaign in campaigns:
            network = campaign.get("network")
            for transfer in await self.cache.get_transfer_dicts(campaign["id"]):
                recipient = transfer.get("to")
                if not recipient:
                    continue
                claims.append(
                    Claim(
                        campaign=campaign.get("title") or "",
                        project=campaign.get("projectName"),
                        address=recipient,
                        date=parse_claim_date(transfer.get("timestamp")),
                        link=self._address_link(network, recipient),
                        token_id=transfer.get("tokenId"),
                        network=network,
                    )
                )
        return claims

    def _address_link(self, network: Optional[str], address: str) -> str:
        try:
            return explorer_address_url(network, address)
        except (ConfigurationException, ValueError):
            return ""

    def _status(self, campaign: Dict[str, Any], now: datetime) -> Optional[str]:
        try:
            start = parse_datetime(campaign["startTime"])
            end = parse_datetime(campaign["endTime"])
        except (KeyError, ParseError):
            return campaign.get("status")
        return get_campaign_status(start, end, now).value

    def rank_campaigns(
        self,
        campaigns: List[Dict[str, Any]],
        counts: Dict[str, int],
        now: datetime,
    ) -> List[Dict[str, Any]]:
        """Campaigns decorated with participants, most participants first"""
        ranked = []
        for campaign in campaigns:
            ranked.append(
                {
                    **campaign,
                    "participants": counts.get(campaign["id"], 0),
                    "status": self._status(campaign, now),
                    "link": IndexerConstants.CAMPAIGN_PUBLIC_URL.format(
                        campaign_id=campaign["id"]
                    ),
                }
            )
        ranked.sort(key=lambda c: c["participants"], reverse=True)
        return ranked

    async def calculate_stats(self) -> Stats:
        """
        Recompute and publish the rollup.

        The previous ``stats`` value is deleted first, so readers see either
        nothing or a complete document.
        """
        self.logger.info("Calculating stats...")
        now = self.clock()

        await self.cache.delete_stats()

        campaigns = await self.load_campaigns()
        counts = await self.cache.transfer_counts()
        claims = await self.collect_claims(campaigns)

        # Undated claims sort last
        def recency(claim: Claim) -> Tuple[bool, datetime]:
            return (claim.date is not None, claim.date or now)

        recent = sorted(claims, key=recency, reverse=True)[:RECENT_CLAIMS]

        stats = Stats(
            campaign_ids=[campaign["id"] for campaign in campaigns],
            total_participations=sum(counts.values()),
            unique_users=len({claim.address.lower() for claim in claims}),
            last_20_claims=recent,
            top_10_campaigns=self.rank_campaigns(campaigns, counts, now)[
                :TOP_CAMPAIGNS
            ],
            calculated_at=now,
        )

        await self.cache.set_stats(stats.to_dict())
        self.logger.info("Done calculating stats!")
        return stats
