"""
The indexing loop.

One tick = one pass per network (serially, with a short gap between
networks) followed by a stats recomputation. Errors that escape a pass are
not caught here: they end the loop and the process.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from tide_indexer.analytics.models import Stats
from tide_indexer.analytics.service import StatsAggregator
from tide_indexer.indexer.models import IndexingPassResult
from tide_indexer.indexer.service import CampaignIndexer
from tide_indexer.scheduler.ticker import Tick, Ticker
from tide_indexer.shared.constants import IndexerConstants
from tide_indexer.shared.logging import get_logger
from tide_indexer.shared.services.cache_service import CacheStore


@dataclass(frozen=True)
class CycleResult:
    tick: Tick
    passes: Tuple[IndexingPassResult, ...]
    stats: Stats


class Driver:
    """Runs indexers on the ticker's cadence."""

    def __init__(
        self,
        indexers: Sequence[CampaignIndexer],
        aggregator: StatsAggregator,
        cache: CacheStore,
        ticker: Ticker,
        *,
        flush_on_start: bool = True,
        network_gap_seconds: float = IndexerConstants.NETWORK_GAP_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.indexers = list(indexers)
        self.aggregator = aggregator
        self.cache = cache
        self.ticker = ticker
        self.flush_on_start = flush_on_start
        self.network_gap_seconds = network_gap_seconds
        self.sleep = sleep
        self.logger = logger or get_logger(__name__)

    async def run_cycle(self, tick: Tick) -> CycleResult:
        self.logger.info(
            f"Starting {tick.kind.value} indexing cycle #{tick.sequence}"
        )
        passes = []
        for position, indexer in enumerate(self.indexers):
            if position > 0:
                await self.sleep(self.network_gap_seconds)
            passes.append(
                await indexer.index_all_campaigns(only_update=tick.only_update)
            )

        stats = await self.aggregator.calculate_stats()
        return CycleResult(tick=tick, passes=tuple(passes), stats=stats)

    async def run(self, max_ticks: Optional[int] = None) -> List[CycleResult]:
        """
        Run cycles until the ticker is exhausted or ``max_ticks`` is reached.

        Returns:
            One CycleResult per tick, in order
        """
        if self.flush_on_start:
            await self.cache.flush_all()

        results = []
        async for tick in self.ticker:
            results.append(await self.run_cycle(tick))
            if max_ticks is not None and len(results) >= max_ticks:
                break
        return results
