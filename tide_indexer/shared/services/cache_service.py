"""
Redis-backed cache shared by the indexers, the aggregator and the frontend.

Layout (per network N, campaign C):
1. campaigns:{N}            list of JSON campaigns
2. transfers:{C}            list of JSON transfer events
3. transfers:length:{C}     stringified count, written with the list
4. stats                    JSON rollup written by the aggregator

Lists are replaced wholesale: delete, then RPUSH. The list and its counter are
two separate writes with no transaction spanning them.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import redis.asyncio as redis

from tide_indexer.campaigns.models import Campaign
from tide_indexer.events.models import TransferEvent
from tide_indexer.shared.constants import Network
from tide_indexer.shared.exceptions import ParseError
from tide_indexer.shared.logging import get_logger

STATS_KEY = "stats"
CAMPAIGNS_PATTERN = "campaigns:*"
TRANSFER_LENGTH_PATTERN = "transfers:length:*"


def campaigns_key(network) -> str:
    return f"campaigns:{Network.from_value(network).value}"


def transfers_key(campaign_id: str) -> str:
    return f"transfers:{campaign_id}"


def transfers_length_key(campaign_id: str) -> str:
    return f"transfers:length:{campaign_id}"


def _loads(value: Any, key: str) -> Any:
    try:
        return json.loads(value)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid JSON under '{key}': {e}")


class CacheStore:
    """
    Typed access to the Redis cache.

    Attributes:
        client: redis.asyncio client created with decode_responses=True
    """

    def __init__(self, client, logger: Optional[logging.Logger] = None):
        self.client = client
        self.logger = logger or get_logger(__name__)

    @classmethod
    def from_url(
        cls, url: str, logger: Optional[logging.Logger] = None
    ) -> "CacheStore":
        """
        Connect to Redis.

        rediss:// URLs are accepted without certificate verification, which
        is what hosted Redis providers with self-signed certificates need.
        """
        kwargs: Dict[str, Any] = {"decode_responses": True}
        if url.startswith("rediss://"):
            kwargs["ssl_cert_reqs"] = "none"
        return cls(redis.Redis.from_url(url, **kwargs), logger=logger)

    async def close(self) -> None:
        await self.client.aclose()

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    async def replace_campaigns(
        self, network, campaigns: Sequence[Campaign]
    ) -> None:
        """Replace the campaign list of a network"""
        key = campaigns_key(network)
        await self.client.delete(key)
        if campaigns:
            await self.client.rpush(
                key, *[json.dumps(c.to_dict()) for c in campaigns]
            )
        self.logger.debug(f"Stored {len(campaigns)} campaigns under {key}")

    async def get_campaign_dicts(self, key: str) -> List[Dict[str, Any]]:
        values = await self.client.lrange(key, 0, -1)
        return [_loads(value, key) for value in values]

    async def get_campaigns(self, network) -> List[Campaign]:
        key = campaigns_key(network)
        return [Campaign.from_dict(d) for d in await self.get_campaign_dicts(key)]

    async def campaign_keys(self) -> List[str]:
        return sorted([key async for key in self.client.scan_iter(CAMPAIGNS_PATTERN)])

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def replace_transfers(
        self, campaign_id: str, transfers: Sequence[TransferEvent]
    ) -> None:
        """
        Replace the transfer list of a campaign and its length counter.

        An empty sequence leaves no list behind and a counter of 0.
        """
        key = transfers_key(campaign_id)
        await self.client.delete(key)
        if transfers:
            await self.client.rpush(
                key, *[json.dumps(t.to_dict()) for t in transfers]
            )
        await self.client.set(transfers_length_key(campaign_id), str(len(transfers)))

    async def get_transfer_dicts(self, campaign_id: str) -> List[Dict[str, Any]]:
        key = transfers_key(campaign_id)
        values = await self.client.lrange(key, 0, -1)
        return [_loads(value, key) for value in values]

    async def get_transfers(self, campaign_id: str) -> List[TransferEvent]:
        return [
            TransferEvent.from_dict(d)
            for d in await self.get_transfer_dicts(campaign_id)
        ]

    async def get_transfer_count(self, campaign_id: str) -> int:
        """Cached count for a campaign, 0 when absent or unparseable"""
        value = await self.client.get(transfers_length_key(campaign_id))
        if not value:
            return 0
        try:
            return int(value)
        except ValueError:
            self.logger.warning(
                f"Ignoring non-integer counter for {campaign_id}: {value!r}"
            )
            return 0

    async def transfer_counts(self) -> Dict[str, int]:
        """All transfers:length:* counters, keyed by campaign id"""
        keys = sorted(
            [key async for key in self.client.scan_iter(TRANSFER_LENGTH_PATTERN)]
        )
        if not keys:
            return {}
        values = await self.client.mget(keys)
        prefix = len(transfers_length_key(""))
        counts = {}
        for key, value in zip(keys, values):
            try:
                counts[key[prefix:]] = int(value or 0)
            except ValueError:
                counts[key[prefix:]] = 0
        return counts

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    async def set_stats(self, stats: Dict[str, Any]) -> None:
        await self.client.set(STATS_KEY, json.dumps(stats))

    async def get_stats(self) -> Optional[Dict[str, Any]]:
        value = await self.client.get(STATS_KEY)
        if value is None:
            return None
        return _loads(value, STATS_KEY)

    async def delete_stats(self) -> None:
        await self.client.delete(STATS_KEY)

    async def flush_all(self) -> None:
        self.logger.info("Flushing Redis cache")
        await self.client.flushall()
