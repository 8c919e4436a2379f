"""
Client for the Tide campaign registry.

The registry lists every campaign across networks:
GET {base}/campaign?onlyActive=false -> {"campaigns": [...]}
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from tide_indexer.shared.constants import IndexerConstants
from tide_indexer.shared.exceptions import APIException, ParseError
from tide_indexer.shared.logging import get_logger
from tide_indexer.shared.services.http_client import get_async_client


class CampaignRegistry:
    """Registry that fetches the raw campaign list."""

    def __init__(
        self,
        base_url: str = IndexerConstants.REGISTRY_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client
        self.logger = logger or get_logger(__name__)

    @property
    def campaigns_url(self) -> str:
        return f"{self.base_url}/campaign"

    async def fetch_campaigns(self) -> List[Dict[str, Any]]:
        """
        Fetch all campaigns, active or not.

        Returns:
            List of raw campaign objects, unfiltered

        Raises:
            APIException: On transport failures or non-2xx responses
            ParseError: If the body is not {"campaigns": [...]}
        """
        client = self._client or get_async_client()
        try:
            response = await client.get(
                self.campaigns_url, params={"onlyActive": "false"}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise APIException(f"Registry request failed: {e}")

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Registry returned invalid JSON: {e}")

        campaigns = data.get("campaigns") if isinstance(data, dict) else None
        if not isinstance(campaigns, list):
            raise ParseError("Registry response has no 'campaigns' list")

        self.logger.debug(f"Registry listed {len(campaigns)} campaigns")
        return campaigns
