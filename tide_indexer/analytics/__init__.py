from tide_indexer.analytics.models import Claim, Stats
from tide_indexer.analytics.service import StatsAggregator

__all__ = ["Claim", "Stats", "StatsAggregator"]
