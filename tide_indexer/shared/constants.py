"""All constants for the project"""

from enum import Enum
from typing import Union

from tide_indexer.shared.exceptions import ConfigurationException


class Network(str, Enum):
    """Networks the indexer knows the chain parameters of."""

    ARBITRUM = "arbitrum"
    MATIC = "matic"

    @classmethod
    def from_value(cls, value: Union[str, "Network"]) -> "Network":
        """Resolve a network name, failing fast on anything unsupported."""
        if isinstance(value, Network):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationException(f"Unsupported network: {value}")

    @classmethod
    def from_chain_id(cls, chain_id: int) -> "Network":
        for network, known_id in ChainConstants.CHAIN_IDS.items():
            if known_id == int(chain_id):
                return network
        raise ConfigurationException(f"Unsupported chainId: {chain_id}")

    @property
    def chain_id(self) -> int:
        return ChainConstants.CHAIN_IDS[self]


class ChainConstants:
    """Hard-coded chain parameters per supported network"""

    CHAIN_IDS = {
        Network.ARBITRUM: 42161,
        Network.MATIC: 137,
    }

    # Used by the fuzzy block <-> timestamp model only
    GENESIS_TIMESTAMPS = {
        Network.ARBITRUM: 1622240000,
        Network.MATIC: 1590824836,
    }

    AVERAGE_BLOCK_TIMES = {
        Network.ARBITRUM: 2.3,
        Network.MATIC: 0.571,
    }

    EXPLORER_API_URLS = {
        Network.ARBITRUM: "https://api.arbiscan.io/api",
        Network.MATIC: "https://api.polygonscan.com/api",
    }

    EXPLORER_PUBLIC_URLS = {
        Network.ARBITRUM: "https://arbiscan.io",
        Network.MATIC: "https://polygonscan.com",
    }

    ALCHEMY_RPC_URLS = {
        Network.ARBITRUM: "https://arb-mainnet.g.alchemy.com/v2/{key}",
        Network.MATIC: "https://polygon-mainnet.g.alchemy.com/v2/{key}",
    }

    @staticmethod
    def _lookup(table: dict, network: Union[str, Network], what: str):
        network = Network.from_value(network)
        if network not in table:
            raise ConfigurationException(
                f"No {what} configured for network {network.value}"
            )
        return table[network]

    @staticmethod
    def get_genesis_timestamp(network: Union[str, Network]) -> int:
        return ChainConstants._lookup(
            ChainConstants.GENESIS_TIMESTAMPS, network, "genesis timestamp"
        )

    @staticmethod
    def get_block_time(network: Union[str, Network]) -> float:
        return ChainConstants._lookup(
            ChainConstants.AVERAGE_BLOCK_TIMES, network, "block time"
        )

    @staticmethod
    def get_explorer_api_url(network: Union[str, Network]) -> str:
        return ChainConstants._lookup(
            ChainConstants.EXPLORER_API_URLS, network, "explorer API"
        )

    @staticmethod
    def get_explorer_public_url(network: Union[str, Network]) -> str:
        return ChainConstants._lookup(
            ChainConstants.EXPLORER_PUBLIC_URLS, network, "explorer URL"
        )

    @staticmethod
    def get_rpc_url(network: Union[str, Network], api_key: str) -> str:
        if not api_key:
            raise ConfigurationException(
                f"RPC API key not set for network {Network.from_value(network).value}"
            )
        template = ChainConstants._lookup(
            ChainConstants.ALCHEMY_RPC_URLS, network, "RPC URL"
        )
        return template.format(key=api_key)


class IndexerConstants:
    """Global class constants for indexing passes"""

    # keccak256("Transfer(address,address,uint256)")
    TRANSFER_EVENT_TOPIC = (
        "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
    )
    ZERO_TOPIC = "0x" + "0" * 64

    EXPLORER_MAX_ROWS = 1000
    REORG_SAFETY_MARGIN = 30

    CAMPAIGN_PACE_SECONDS = 1.2
    NETWORK_GAP_SECONDS = 1.2
    POLL_INTERVAL_SECONDS = 5 * 60

    REGISTRY_BASE_URL = "https://api.tideprotocol.xyz"
    CAMPAIGN_PUBLIC_URL = "https://tideprotocol.xyz/users/campaign/{campaign_id}"
