"""
Unit tests for the command line interface.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from tide_indexer import cli
from tide_indexer.indexer.models import CampaignOutcome, IndexingPassResult, OutcomeKind
from tide_indexer.shared.config import Settings
from tide_indexer.shared.constants import Network
from tide_indexer.shared.exceptions import ConfigurationException
from tide_indexer.transfers.fetchers import ExplorerTransferFetcher, RpcTransferFetcher
from tide_indexer.utils.formatters import format_address, pass_table, stats_tables

SETTINGS = Settings(
    alchemy_arbitrum_key="a",
    alchemy_matic_key="m",
    arbiscan_api_key="as",
    polygonscan_api_key="ps",
    redis_url="redis://localhost:6379/0",
)


class TestParser:
    """Tests for build_parser."""

    def test_run_defaults(self):
        args = cli.build_parser().parse_args(["run"])

        assert args.func is cli.cmd_run
        assert args.no_flush is False
        assert args.fetch_method is None
        assert args.network is None

    def test_run_options(self):
        args = cli.build_parser().parse_args(
            ["run", "--no-flush", "--fetch-method", "rpc", "--interval", "60",
             "--network", "matic", "arbitrum"]
        )

        assert args.no_flush is True
        assert args.fetch_method == "rpc"
        assert args.interval == 60.0
        assert args.network == ["matic", "arbitrum"]

    def test_index_requires_network(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["index"])

    def test_rejects_unknown_network(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["index", "--network", "optimism"])

    def test_stats_flags(self):
        args = cli.build_parser().parse_args(["stats", "--recompute", "--json"])

        assert args.recompute and args.json


class TestBuildIndexer:
    def test_wires_fetch_method(self, cache):
        registry = MagicMock()

        explorer_indexer = cli.build_indexer(SETTINGS, Network.ARBITRUM, cache, registry)
        rpc_indexer = cli.build_indexer(
            SETTINGS, Network.MATIC, cache, registry, fetch_method="rpc"
        )

        assert isinstance(explorer_indexer.fetcher, ExplorerTransferFetcher)
        assert isinstance(rpc_indexer.fetcher, RpcTransferFetcher)
        assert explorer_indexer.pace_seconds == 1.2
        assert explorer_indexer.time_mapper.explorer.api_key == "as"


class TestCommands:
    """Tests for command execution with a fake cache."""

    @pytest.fixture(autouse=True)
    def wiring(self, monkeypatch, cache):
        monkeypatch.setattr(cli.Settings, "from_env", classmethod(lambda cls: SETTINGS))
        monkeypatch.setattr(cli.CacheStore, "from_url", classmethod(lambda cls, url: cache))
        monkeypatch.setattr(cli, "aclose_async_client", AsyncMock())

    def test_flush(self, fake_redis):
        fake_redis.data["campaigns:arbitrum"] = ["x"]

        cli.main(["flush"])

        assert fake_redis.data == {}

    def test_stats_json(self, fake_redis, capsys):
        fake_redis.data["stats"] = json.dumps({"totalParticipations": 7})

        cli.main(["stats", "--json"])

        assert '"totalParticipations": 7' in capsys.readouterr().out

    def test_stats_recompute(self, fake_redis):
        cli.main(["stats", "--recompute"])

        assert json.loads(fake_redis.data["stats"])["totalParticipations"] == 0

    def test_index_prints_summary(self, monkeypatch, capsys):
        indexer = MagicMock()
        indexer.index_all_campaigns = AsyncMock(
            return_value=IndexingPassResult(
                network=Network.MATIC,
                only_update=True,
                outcomes=(CampaignOutcome("c1", OutcomeKind.UP_TO_DATE, 2, 2),),
            )
        )
        monkeypatch.setattr(cli, "build_indexer", lambda *a, **kw: indexer)

        cli.main(["index", "--network", "matic", "--only-update"])

        indexer.index_all_campaigns.assert_awaited_once_with(only_update=True)
        assert "up_to_date" in capsys.readouterr().out

    @pytest.mark.parametrize("argv,expected", [([], 300.0), (["--interval", "0"], 0.0)])
    def test_run_interval(self, monkeypatch, argv, expected):
        driver = MagicMock()
        driver.return_value.run = AsyncMock()
        ticker = MagicMock()
        monkeypatch.setattr(cli, "Driver", driver)
        monkeypatch.setattr(cli, "Ticker", ticker)
        monkeypatch.setattr(cli, "build_indexer", lambda *a, **kw: MagicMock())

        cli.main(["run", *argv])

        ticker.assert_called_once_with(expected)
        driver.return_value.run.assert_awaited_once()

    def test_configuration_error_propagates(self, monkeypatch):
        def missing(cls):
            raise ConfigurationException("Missing environment variables: REDIS_URL")

        monkeypatch.setattr(cli.Settings, "from_env", classmethod(missing))

        with pytest.raises(ConfigurationException):
            cli.main(["flush"])


class TestFormatters:
    def test_format_address(self):
        assert format_address("0x52f541764E6e90eeBc5c21Ff570De0e2D63766B6") == "0x52f5...66B6"
        assert format_address(None) == "N/A"

    def test_tables_render(self):
        result = IndexingPassResult(
            network=Network.ARBITRUM,
            only_update=False,
            outcomes=(CampaignOutcome("c1", OutcomeKind.UPDATED, 3),),
        )

        assert pass_table(result).row_count == 1
        tables = stats_tables(
            {
                "campaignIds": ["c1"],
                "totalParticipations": 3,
                "uniqueUsers": 1,
                "top10CampaignsSortedByParticipants": [
                    {"id": "c1", "title": "Quest", "participants": 3}
                ],
                "last20ClaimsSortedByDate": [],
            }
        )
        assert [t.row_count for t in tables] == [4, 1, 0]
