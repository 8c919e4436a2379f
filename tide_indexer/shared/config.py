"""
Process configuration loaded from the environment.

A ``.env`` file in the working directory is honoured through python-dotenv;
real environment variables always win over it.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from tide_indexer.shared.constants import (
    ChainConstants,
    IndexerConstants,
    Network,
)
from tide_indexer.shared.exceptions import ConfigurationException

REQUIRED_VARIABLES = (
    "ALCHEMY_ARBITRUM_KEY",
    "ALCHEMY_MATIC_KEY",
    "ARBISCAN_API_KEY",
    "POLYGONSCAN_API_KEY",
    "REDIS_URL",
)

FETCH_METHODS = ("explorer", "rpc")


@dataclass(frozen=True)
class Settings:
    """Validated runtime settings for the indexer process."""

    alchemy_arbitrum_key: str
    alchemy_matic_key: str
    arbiscan_api_key: str
    polygonscan_api_key: str
    redis_url: str
    registry_url: str = IndexerConstants.REGISTRY_BASE_URL
    fetch_method: str = "explorer"
    poll_interval_seconds: float = IndexerConstants.POLL_INTERVAL_SECONDS
    pace_seconds: float = IndexerConstants.CAMPAIGN_PACE_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        load_dotenv_file: bool = True,
    ) -> "Settings":
        """
        Build settings from the environment.

        Args:
            env: Mapping to read instead of os.environ (tests)
            load_dotenv_file: Whether to load a .env file first

        Raises:
            ConfigurationException: If a required variable is missing or a
                value is invalid
        """
        if env is None:
            if load_dotenv_file:
                load_dotenv()
            env = os.environ

        missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
        if missing:
            raise ConfigurationException(
                "Missing environment variables: "
                + ", ".join(missing)
                + " (check your .env file)"
            )

        fetch_method = env.get("TIDE_FETCH_METHOD", "explorer").lower()
        if fetch_method not in FETCH_METHODS:
            raise ConfigurationException(
                f"Invalid TIDE_FETCH_METHOD: {fetch_method}. "
                f"Must be one of {FETCH_METHODS}"
            )

        return cls(
            alchemy_arbitrum_key=env["ALCHEMY_ARBITRUM_KEY"],
            alchemy_matic_key=env["ALCHEMY_MATIC_KEY"],
            arbiscan_api_key=env["ARBISCAN_API_KEY"],
            polygonscan_api_key=env["POLYGONSCAN_API_KEY"],
            redis_url=env["REDIS_URL"],
            registry_url=env.get(
                "TIDE_REGISTRY_URL", IndexerConstants.REGISTRY_BASE_URL
            ).rstrip("/"),
            fetch_method=fetch_method,
            poll_interval_seconds=_as_float(
                env,
                "TIDE_POLL_INTERVAL",
                IndexerConstants.POLL_INTERVAL_SECONDS,
            ),
            pace_seconds=_as_float(
                env, "TIDE_PACE_SECONDS", IndexerConstants.CAMPAIGN_PACE_SECONDS
            ),
            log_level=env.get("TIDE_LOG_LEVEL", "INFO").upper(),
        )

    def rpc_url(self, network) -> str:
        network = Network.from_value(network)
        key = {
            Network.ARBITRUM: self.alchemy_arbitrum_key,
            Network.MATIC: self.alchemy_matic_key,
        }[network]
        return ChainConstants.get_rpc_url(network, key)

    def explorer_api_key(self, network) -> str:
        network = Network.from_value(network)
        return {
            Network.ARBITRUM: self.arbiscan_api_key,
            Network.MATIC: self.polygonscan_api_key,
        }[network]


def _as_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return float(default)
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationException(f"Invalid {name}: {raw!r} is not a number")
