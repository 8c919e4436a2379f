"""
Explorer service module for interacting with Etherscan-family APIs.

This module wraps the two explorer endpoints the indexer relies on (block by
timestamp, and contract logs) for Arbiscan and Polygonscan. Responses are
validated at this boundary: a non-OK status raises APIException and a payload
of the wrong shape raises ParseError.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from tide_indexer.events.models import RawLogEntry
from tide_indexer.shared.constants import (
    ChainConstants,
    IndexerConstants,
    Network,
)
from tide_indexer.shared.exceptions import (
    APIException,
    ConfigurationException,
    ParseError,
)
from tide_indexer.shared.logging import get_logger
from tide_indexer.shared.services.http_client import get_async_client

NO_RECORDS_MESSAGES = ("No records found", "No logs found")


class ExplorerService:
    """
    Client for one network's block-explorer API.

    Attributes:
        network: Network the explorer indexes
        base_url: API root (e.g. https://api.arbiscan.io/api)
    """

    def __init__(
        self,
        network: Union[str, Network],
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.network = Network.from_value(network)
        if not api_key:
            raise ConfigurationException(
                f"Explorer API key is not set for {self.network.value}"
            )
        self.api_key = api_key
        self.base_url = base_url or ChainConstants.get_explorer_api_url(
            self.network
        )
        self._client = client
        self.logger = logger or get_logger(__name__)

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_async_client()

    async def _request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one explorer request and return the decoded JSON body.

        Raises:
            APIException: On transport failures or non-2xx responses
            ParseError: If the body is not a JSON object
        """
        query = {**params, "apikey": self.api_key}
        try:
            response = await self.client.get(self.base_url, params=query)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise APIException(
                f"{self.network.value} explorer request failed "
                f"({params.get('module')}/{params.get('action')}): {e}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Explorer returned invalid JSON: {e}")

        if not isinstance(data, dict):
            raise ParseError(f"Explorer returned a non-object body: {data!r}")
        return data

    async def get_block_number_by_timestamp(
        self, timestamp: int, closest: str = "before"
    ) -> int:
        """
        Get the block closest to a timestamp.

        Args:
            timestamp: Unix timestamp in seconds
            closest: "before" or "after"

        Returns:
            int: Block number

        Raises:
            APIException: If the explorer reports an error
            ParseError: If the result is not a block number
        """
        data = await self._request(
            {
                "module": "block",
                "action": "getblocknobytime",
                "timestamp": int(timestamp),
                "closest": closest,
            }
        )

        if data.get("status") != "1":
            raise APIException(
                f"getblocknobytime failed on {self.network.value}: "
                f"{data.get('message')} ({data.get('result')})"
            )

        result = data.get("result")
        try:
            return int(result)
        except (TypeError, ValueError):
            raise ParseError(f"getblocknobytime returned {result!r}")

    async def get_logs(
        self,
        address: str,
        from_block: int,
        to_block: int,
        topics: Optional[Dict[str, str]] = None,
    ) -> List[RawLogEntry]:
        """
        Get logs for a contract within an inclusive block range.

        The explorer caps the response at 1000 rows; callers paginate by
        block range (see ExplorerTransferFetcher).

        Args:
            address: Contract address
            from_block: First block (inclusive)
            to_block: Last block (inclusive)
            topics: Topic filters keyed by position, e.g. {"0": "0x..."}

        Returns:
            List[RawLogEntry]: Validated log entries, in explorer order

        Raises:
            APIException: If the explorer reports a non-OK status
            ParseError: If the result is not a list of log objects
        """
        params: Dict[str, Any] = {
            "module": "logs",
            "action": "getLogs",
            "fromBlock": int(from_block),
            "toBlock": int(to_block),
            "address": address,
        }
        topics = topics or {}
        for position, value in sorted(topics.items()):
            params[f"topic{position}"] = value
        positions = sorted(topics)
        for left, right in zip(positions, positions[1:]):
            params[f"topic{left}_{right}_opr"] = "and"

        data = await self._request(params)
        message = data.get("message")
        result = data.get("result")

        if message != "OK":
            if message in NO_RECORDS_MESSAGES:
                self.logger.debug(
                    f"No logs for {address} in [{from_block}, {to_block}]"
                )
                return []
            raise APIException(f"API error: {result or message}")

        if not isinstance(result, list):
            raise ParseError(f"getLogs result must be a list, got {result!r}")

        return [RawLogEntry.from_explorer(entry) for entry in result]


def transfer_topics(mints_only: bool = False) -> Dict[str, str]:
    """Topic filter for Transfer logs, optionally restricted to mints"""
    topics = {"0": IndexerConstants.TRANSFER_EVENT_TOPIC}
    if mints_only:
        topics["1"] = IndexerConstants.ZERO_TOPIC
    return topics
