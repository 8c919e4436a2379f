"""Tide Indexer - campaign transfer indexing for Arbitrum and Polygon."""

__version__ = "1.0.0"

from .analytics import StatsAggregator
from .indexer import CampaignIndexer
from .shared.services.cache_service import CacheStore

__all__ = ["CacheStore", "CampaignIndexer", "StatsAggregator"]
