"""
Campaign indexing for one network.

A pass collects the campaign list from the registry, then indexes each
campaign in turn:

1. Idle campaigns are skipped without any network call
2. Start (and, for ended campaigns, end) blocks are resolved by timestamp
3. Transfers are fetched with the configured strategy
4. Incremental passes only write when more transfers were found than cached
5. Otherwise the transfer list and its counter are replaced in the cache

Campaigns are processed serially with a pause between them so that at most
one explorer request per API key is in flight.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Tuple, Union

import httpx

from tide_indexer.campaigns.models import Campaign, CampaignStatus, lists_chain
from tide_indexer.chain.time_mapper import ChainTimeMapper
from tide_indexer.events.models import TransferEvent
from tide_indexer.indexer.models import (
    CampaignOutcome,
    IndexingPassResult,
    OutcomeKind,
)
from tide_indexer.shared.constants import IndexerConstants, Network
from tide_indexer.shared.exceptions import (
    APIException,
    BlockResolutionError,
    ParseError,
)
from tide_indexer.shared.logging import get_logger
from tide_indexer.shared.registry import CampaignRegistry
from tide_indexer.shared.results import (
    ErrorSeverity,
    ProcessingError,
    Result,
)
from tide_indexer.shared.services.cache_service import CacheStore
from tide_indexer.transfers.fetchers import TransferFetcher
from tide_indexer.utils.blockchain import explorer_address_url, explorer_tx_url

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CampaignIndexer:
    """Indexes the campaigns of one network into the cache."""

    def __init__(
        self,
        network: Union[str, Network],
        registry: CampaignRegistry,
        cache: CacheStore,
        fetcher: TransferFetcher,
        time_mapper: ChainTimeMapper,
        *,
        pace_seconds: float = IndexerConstants.CAMPAIGN_PACE_SECONDS,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.network = Network.from_value(network)
        self.registry = registry
        self.cache = cache
        self.fetcher = fetcher
        self.time_mapper = time_mapper
        self.pace_seconds = pace_seconds
        self.clock = clock
        self.sleep = sleep
        self.logger = logger or get_logger(f"{__name__}.{self.network.value}")

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    async def collect_campaigns(self) -> Result[List[Campaign]]:
        """
        Fetch the registry, keep this network's campaigns and cache them.

        Returns:
            Result with the campaigns. On registry failure the result is
            failed, carries an empty list, and the cache is left untouched.
        """
        try:
            payloads = await self.registry.fetch_campaigns()
        except (APIException, ParseError) as e:
            self.logger.error(
                f"Error while fetching campaigns on {self.network.value}: {e}"
            )
            return Result.fail_with_message(
                source="collect_campaigns",
                message=str(e),
                context={"network": self.network.value},
                exception=e,
                data=[],
            )

        now = self.clock()
        chain_id = self.network.chain_id
        result: Result[List[Campaign]] = Result.ok([])

        for payload in payloads:
            if not lists_chain(payload, chain_id):
                continue
            try:
                result.data.append(
                    Campaign.from_registry(payload, self.network, now)
                )
            except ParseError as e:
                self.logger.warning(f"Skipping malformed campaign: {e}")
                result.add_warning(
                    "collect_campaigns",
                    str(e),
                    context={"network": self.network.value},
                )

        self.logger.debug(
            f"Found {len(result.data)} campaigns on {self.network.value}"
        )
        await self.cache.replace_campaigns(self.network, result.data)
        return result

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def _resolve_block(self, campaign: Campaign, timestamp: int, which: str) -> int:
        try:
            return await self.time_mapper.timestamp_to_block(timestamp)
        except (APIException, ParseError, httpx.HTTPError) as e:
            raise BlockResolutionError(
                f"Could not find {which} block for {campaign.id}: {e}"
            )

    async def get_all_transfers(self, campaign: Campaign) -> List[TransferEvent]:
        """
        Fetch every transfer of a campaign within its window.

        Active campaigns are fetched up to the latest safe block.

        Raises:
            BlockResolutionError: If a window bound cannot be mapped to a block
        """
        status = campaign.status_at(self.clock())
        if status is CampaignStatus.IDLE:
            return []

        start_block = await self._resolve_block(
            campaign, campaign.start_timestamp, "start"
        )
        end_block = None
        if status is CampaignStatus.ENDED:
            end_block = await self._resolve_block(
                campaign, campaign.end_timestamp, "end"
            )

        return await self.fetcher.fetch(campaign.address, start_block, end_block)

    async def _update_gate(self, campaign_id: str, found: int) -> Tuple[bool, int]:
        cached = await self.cache.get_transfer_count(campaign_id)
        return found > cached, cached

    async def should_update_transfers(self, campaign_id: str, found: int) -> bool:
        """Write only when strictly more transfers were found than cached"""
        should_update, _ = await self._update_gate(campaign_id, found)
        return should_update

    def _link(self, transfer: TransferEvent) -> str:
        if transfer.transaction_hash:
            return explorer_tx_url(self.network, transfer.transaction_hash)
        return explorer_address_url(self.network, transfer.to_address)

    async def save_transfers(
        self, transfers: List[TransferEvent], campaign: Campaign
    ) -> None:
        decorated = [
            transfer.with_display(
                network=self.network.value,
                link=self._link(transfer),
                campaign=campaign.title,
                project=campaign.project_name,
            )
            for transfer in transfers
        ]
        await self.cache.replace_transfers(campaign.id, decorated)

    async def index_campaign(
        self, campaign: Campaign, only_update: bool = False
    ) -> CampaignOutcome:
        """Index one campaign and report what happened"""
        if campaign.status_at(self.clock()) is CampaignStatus.IDLE:
            self.logger.warning(f"CID: {campaign.id} is idle, skipping indexing")
            return CampaignOutcome(campaign.id, OutcomeKind.SKIPPED)

        try:
            transfers = await self.get_all_transfers(campaign)
        except BlockResolutionError as e:
            self.logger.error(
                f"Error while fetching transfers on {self.network.value} "
                f"(campaign: {campaign.title}): {e}"
            )
            return CampaignOutcome(
                campaign.id,
                OutcomeKind.FAILED,
                error=ProcessingError(
                    source="index_campaign",
                    message=str(e),
                    severity=ErrorSeverity.ERROR,
                    context={
                        "network": self.network.value,
                        "campaign_id": campaign.id,
                    },
                    exception=e,
                ),
            )

        found = len(transfers)
        self.logger.info(f"CID: {campaign.id}: {found} transfers found.")

        cached = None
        if only_update:
            should_update, cached = await self._update_gate(campaign.id, found)
            if not should_update:
                self.logger.info(f"CID: {campaign.id} is up to date.")
                return CampaignOutcome(
                    campaign.id,
                    OutcomeKind.UP_TO_DATE,
                    transfers_found=found,
                    cached_before=cached,
                )

        await self.save_transfers(transfers, campaign)
        return CampaignOutcome(
            campaign.id,
            OutcomeKind.UPDATED,
            transfers_found=found,
            cached_before=cached,
        )

    async def index_all_campaigns(self, only_update: bool = False) -> IndexingPassResult:
        """
        Run one pass over the network.

        Args:
            only_update: Incremental mode, gated by the cached counters

        Returns:
            IndexingPassResult with the campaigns, outcomes and errors
        """
        if only_update:
            self.logger.info("Running in update mode...")

        collected = await self.collect_campaigns()
        campaigns = collected.data or []
        errors = list(collected.errors)
        outcomes = []

        for position, campaign in enumerate(campaigns):
            outcome = await self.index_campaign(campaign, only_update)
            outcomes.append(outcome)
            if outcome.error is not None:
                errors.append(outcome.error)
            if outcome.made_network_calls and position < len(campaigns) - 1:
                await self.sleep(self.pace_seconds)

        self.logger.info(f"Indexing finished for {self.network.value}")
        return IndexingPassResult(
            network=self.network,
            only_update=only_update,
            campaigns=tuple(campaigns),
            outcomes=tuple(outcomes),
            errors=tuple(errors),
        )
