"""
Block <-> timestamp mapping.

Two flavours are offered:
1. Exact: the explorer's getblocknobytime lookup (network-bound)
2. Fuzzy: a linear model, genesis + block * average block time

The fuzzy model is an approximation. It is only used where the explorer
timestamp is unavailable (RPC-fetched logs) and for diagnostics.
"""

import math
from decimal import Decimal
from typing import Union

from tide_indexer.shared.constants import ChainConstants, Network
from tide_indexer.shared.services.explorer_service import ExplorerService


def get_fuzzy_timestamp_from_block_number(
    block_number: int, network: Union[str, Network]
) -> int:
    """
    Approximate the timestamp of a block.

    Raises:
        ConfigurationException: If the network is not supported
    """
    genesis = ChainConstants.get_genesis_timestamp(network)
    block_time = Decimal(str(ChainConstants.get_block_time(network)))
    return math.floor(genesis + int(block_number) * block_time)


def get_fuzzy_block_number_from_timestamp(
    timestamp: int, network: Union[str, Network]
) -> int:
    """
    Approximate the block mined at a timestamp (inverse of the above).

    Raises:
        ConfigurationException: If the network is not supported
    """
    genesis = ChainConstants.get_genesis_timestamp(network)
    block_time = Decimal(str(ChainConstants.get_block_time(network)))
    return math.floor((int(timestamp) - genesis) / block_time)


class ChainTimeMapper:
    """Maps campaign times to blocks for one network."""

    def __init__(self, network: Union[str, Network], explorer: ExplorerService):
        self.network = Network.from_value(network)
        self.explorer = explorer

    async def timestamp_to_block(self, timestamp: int) -> int:
        """
        Last block mined at or before ``timestamp``.

        Raises:
            APIException: If the explorer reports an error
            ParseError: If the explorer answer is not a block number
        """
        return await self.explorer.get_block_number_by_timestamp(
            int(timestamp), closest="before"
        )

    def block_to_timestamp(self, block_number: int) -> int:
        return get_fuzzy_timestamp_from_block_number(block_number, self.network)

    def estimate_block(self, timestamp: int) -> int:
        return get_fuzzy_block_number_from_timestamp(timestamp, self.network)
