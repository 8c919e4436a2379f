"""
Web3 Service module for the RPC side of the indexer.

Wraps a web3.py HTTP provider per network. web3 calls are blocking, so the
async helpers run them in the default executor to keep the event loop free.
"""

import asyncio
from typing import Any, Dict, List, Optional, Union

from web3 import Web3

from tide_indexer.events.models import RawLogEntry
from tide_indexer.shared.constants import IndexerConstants, Network


class Web3Service:
    """
    A service class for managing a Web3 connection to one network.
    """

    def __init__(
        self,
        network: Union[str, Network],
        rpc_url: Optional[str] = None,
        w3: Optional[Web3] = None,
    ):
        """
        Initialize the Web3Service.

        Args:
            network: Network the provider points at
            rpc_url: HTTP RPC endpoint (ignored when ``w3`` is given)
            w3: Pre-built Web3 instance (tests)
        """
        self.network = Network.from_value(network)
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url))

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    def get_block_number_sync(self) -> int:
        return int(self.w3.eth.block_number)

    async def get_block_number(self) -> int:
        """Get the current chain height"""
        return await self._run(self.get_block_number_sync)

    def get_logs_sync(
        self,
        address: str,
        from_block: int,
        to_block: Union[int, str],
        topics: Optional[List[Optional[str]]] = None,
    ) -> List[RawLogEntry]:
        filter_params: Dict[str, Any] = {
            "address": Web3.to_checksum_address(address),
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": topics or [IndexerConstants.TRANSFER_EVENT_TOPIC],
        }
        logs = self.w3.eth.get_logs(filter_params)
        return [RawLogEntry.from_rpc(log) for log in logs]

    async def get_logs(
        self,
        address: str,
        from_block: int,
        to_block: Union[int, str] = "latest",
        topics: Optional[List[Optional[str]]] = None,
    ) -> List[RawLogEntry]:
        """
        Get logs for a contract over a block range with a single eth_getLogs.

        Args:
            address: Contract address
            from_block: First block (inclusive)
            to_block: Last block (inclusive) or "latest"
            topics: Positional topic filter, defaults to the Transfer topic

        Returns:
            List[RawLogEntry]: Logs in chain order
        """
        return await self._run(
            self.get_logs_sync, address, from_block, to_block, topics
        )
