"""
Unit tests for settings and chain constants.
"""

import pytest

from tide_indexer.shared.config import Settings
from tide_indexer.shared.constants import ChainConstants, Network
from tide_indexer.shared.exceptions import ConfigurationException

ENV = {
    "ALCHEMY_ARBITRUM_KEY": "arb-key",
    "ALCHEMY_MATIC_KEY": "matic-key",
    "ARBISCAN_API_KEY": "arbiscan",
    "POLYGONSCAN_API_KEY": "polygonscan",
    "REDIS_URL": "redis://localhost:6379/0",
}


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self):
        settings = Settings.from_env(ENV)

        assert settings.fetch_method == "explorer"
        assert settings.poll_interval_seconds == 300
        assert settings.pace_seconds == 1.2
        assert settings.registry_url == "https://api.tideprotocol.xyz"

    def test_missing_variables_are_all_named(self):
        env = dict(ENV)
        del env["REDIS_URL"]
        del env["ARBISCAN_API_KEY"]

        with pytest.raises(ConfigurationException) as exc_info:
            Settings.from_env(env)

        assert "REDIS_URL" in str(exc_info.value)
        assert "ARBISCAN_API_KEY" in str(exc_info.value)

    def test_overrides(self):
        settings = Settings.from_env(
            {
                **ENV,
                "TIDE_FETCH_METHOD": "RPC",
                "TIDE_POLL_INTERVAL": "60",
                "TIDE_PACE_SECONDS": "0.5",
                "TIDE_REGISTRY_URL": "https://registry.test/",
                "TIDE_LOG_LEVEL": "debug",
            }
        )

        assert settings.fetch_method == "rpc"
        assert settings.poll_interval_seconds == 60.0
        assert settings.pace_seconds == 0.5
        assert settings.registry_url == "https://registry.test"
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "name,value",
        [("TIDE_FETCH_METHOD", "graphql"), ("TIDE_POLL_INTERVAL", "often")],
    )
    def test_invalid_values(self, name, value):
        with pytest.raises(ConfigurationException):
            Settings.from_env({**ENV, name: value})

    def test_per_network_lookups(self):
        settings = Settings.from_env(ENV)

        assert settings.rpc_url("arbitrum") == (
            "https://arb-mainnet.g.alchemy.com/v2/arb-key"
        )
        assert settings.rpc_url(Network.MATIC).endswith("/matic-key")
        assert settings.explorer_api_key("matic") == "polygonscan"


class TestNetwork:
    def test_chain_ids(self):
        assert Network.ARBITRUM.chain_id == 42161
        assert Network.from_chain_id(137) is Network.MATIC

    @pytest.mark.parametrize("value", ["optimism", "", "polygon"])
    def test_unsupported(self, value):
        with pytest.raises(ConfigurationException):
            Network.from_value(value)

    def test_unknown_chain_id(self):
        with pytest.raises(ConfigurationException):
            Network.from_chain_id(10)

    def test_explorer_urls(self):
        assert ChainConstants.get_explorer_api_url("arbitrum") == (
            "https://api.arbiscan.io/api"
        )
        assert ChainConstants.get_explorer_api_url("MATIC") == (
            "https://api.polygonscan.com/api"
        )

    def test_rpc_url_requires_key(self):
        with pytest.raises(ConfigurationException):
            ChainConstants.get_rpc_url("arbitrum", "")
