"""
Transfer fetching strategies.

Explorer: paginated getLogs, capped at 1000 rows per response. Pages are
advanced by block range and merged on (transactionHash, logIndex).

RPC: a single eth_getLogs over the whole range, with fuzzy timestamps.

Both strategies fail soft: any upstream failure is logged and yields [].
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple, Union

import httpx
from web3.exceptions import Web3Exception

from tide_indexer.chain.time_mapper import get_fuzzy_timestamp_from_block_number
from tide_indexer.events.decoder import decode_transfers
from tide_indexer.events.models import TransferEvent
from tide_indexer.shared.constants import IndexerConstants, Network
from tide_indexer.shared.exceptions import (
    APIException,
    ConfigurationException,
    DecodeError,
    ParseError,
)
from tide_indexer.shared.logging import get_logger
from tide_indexer.shared.services.explorer_service import (
    ExplorerService,
    transfer_topics,
)
from tide_indexer.shared.services.web3_service import Web3Service

# Upstream failures a fetch swallows
FETCH_ERRORS = (
    APIException,
    ParseError,
    DecodeError,
    httpx.HTTPError,
    Web3Exception,
    OSError,
    ValueError,
)


class FetchMethod(str, Enum):
    EXPLORER = "explorer"
    RPC = "rpc"

    @classmethod
    def from_value(cls, value: Union[str, "FetchMethod"]) -> "FetchMethod":
        if isinstance(value, FetchMethod):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationException(f"Unsupported fetch method: {value}")


class TransferFetcher(Protocol):
    async def fetch(
        self,
        contract_address: str,
        from_block: int,
        to_block: Optional[int] = None,
    ) -> List[TransferEvent]: ...


class ExplorerTransferFetcher:
    """Fetch Transfer events through the block explorer, page by page."""

    def __init__(
        self,
        network: Union[str, Network],
        explorer: ExplorerService,
        web3_service: Web3Service,
        mints_only: bool = False,
        max_rows: int = IndexerConstants.EXPLORER_MAX_ROWS,
        reorg_margin: int = IndexerConstants.REORG_SAFETY_MARGIN,
        logger: Optional[logging.Logger] = None,
    ):
        self.network = Network.from_value(network)
        self.explorer = explorer
        self.web3_service = web3_service
        self.mints_only = mints_only
        self.max_rows = max_rows
        self.reorg_margin = reorg_margin
        self.logger = logger or get_logger(__name__)

    async def resolve_to_block(self, to_block: Optional[int]) -> int:
        """Explicit bound, or the chain head minus the reorg margin"""
        if to_block is not None:
            return int(to_block)
        latest = await self.web3_service.get_block_number()
        return latest - self.reorg_margin

    async def fetch(
        self,
        contract_address: str,
        from_block: int,
        to_block: Optional[int] = None,
    ) -> List[TransferEvent]:
        """
        Fetch every Transfer of a contract in [from_block, to_block].

        A full page (max_rows) ending before to_block means the explorer
        truncated the answer: the next query starts at the last returned
        block. If that query ends on the same block again, the range cannot
        be advanced and what was gathered so far is returned.

        Returns:
            List[TransferEvent]: Deduplicated events in first-seen order, or
            [] if any request failed
        """
        try:
            return await self._fetch_pages(contract_address, from_block, to_block)
        except FETCH_ERRORS as e:
            self.logger.error(
                f"Error while fetching transfer events from explorer "
                f"({self.network.value}, {contract_address}): {e}"
            )
            return []

    async def _fetch_pages(
        self,
        contract_address: str,
        from_block: int,
        to_block: Optional[int],
    ) -> List[TransferEvent]:
        end_block = await self.resolve_to_block(to_block)
        cursor = int(from_block)
        topics = transfer_topics(self.mints_only)

        accumulated: Dict[Tuple, TransferEvent] = {}
        previous_last_block: Optional[int] = None

        while True:
            raws = await self.explorer.get_logs(
                contract_address, cursor, end_block, topics=topics
            )
            if not raws:
                break

            last_block = raws[-1].block_number
            if previous_last_block is not None and last_block == previous_last_block:
                self.logger.warning(
                    f"Last event block ({last_block}) already fetched, "
                    f"stopping pagination for {contract_address}"
                )
                return list(accumulated.values())

            for event in decode_transfers(raws):
                accumulated.setdefault(event.dedup_key, event)

            if len(raws) == self.max_rows and last_block < end_block:
                self.logger.warning(
                    f"Last event block ({last_block}) < toBlock ({end_block}), "
                    f"paginating"
                )
                previous_last_block = last_block
                cursor = last_block
                continue
            break

        self.logger.debug(
            f"{len(accumulated)} transfers for {contract_address} "
            f"in [{from_block}, {end_block}]"
        )
        return list(accumulated.values())


class RpcTransferFetcher:
    """Fetch Transfer events with a single eth_getLogs."""

    def __init__(
        self,
        network: Union[str, Network],
        web3_service: Web3Service,
        logger: Optional[logging.Logger] = None,
    ):
        self.network = Network.from_value(network)
        self.web3_service = web3_service
        self.logger = logger or get_logger(__name__)

    async def fetch(
        self,
        contract_address: str,
        from_block: int,
        to_block: Optional[int] = None,
    ) -> List[TransferEvent]:
        """
        Fetch every Transfer of a contract in [from_block, to_block or latest].

        Timestamps come from the fuzzy block model since logs carry none.
        """
        self.logger.info(f"Querying transfers from block {from_block}")
        try:
            raws = await self.web3_service.get_logs(
                contract_address,
                int(from_block),
                "latest" if to_block is None else int(to_block),
                topics=[IndexerConstants.TRANSFER_EVENT_TOPIC],
            )
            transfers = [
                event.with_timestamp(
                    get_fuzzy_timestamp_from_block_number(
                        event.block_number or 0, self.network
                    )
                )
                for event in decode_transfers(raws)
            ]
        except FETCH_ERRORS as e:
            self.logger.error(
                f"Error while fetching transfer events from RPC "
                f"({self.network.value}, {contract_address}): {e}"
            )
            return []

        self.logger.debug(f"Found {len(transfers)} transfer events")
        return transfers


def build_fetcher(
    method: Union[str, FetchMethod],
    network: Union[str, Network],
    explorer: ExplorerService,
    web3_service: Web3Service,
    mints_only: bool = False,
    logger: Optional[logging.Logger] = None,
) -> TransferFetcher:
    """Create the fetcher for a FetchMethod"""
    method = FetchMethod.from_value(method)
    if method is FetchMethod.RPC:
        return RpcTransferFetcher(network, web3_service, logger=logger)
    return ExplorerTransferFetcher(
        network,
        explorer,
        web3_service,
        mints_only=mints_only,
        logger=logger,
    )
