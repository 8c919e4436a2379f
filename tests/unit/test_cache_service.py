"""
Unit tests for the Redis cache store.
"""

import json

import pytest

from tide_indexer.campaigns.models import Campaign
from tide_indexer.events.decoder import decode_transfer
from tide_indexer.shared.exceptions import ParseError
from tide_indexer.shared.services.cache_service import (
    STATS_KEY,
    CacheStore,
    campaigns_key,
    transfers_key,
    transfers_length_key,
)


class TestKeys:
    def test_key_layout(self):
        assert campaigns_key("matic") == "campaigns:matic"
        assert transfers_key("c1") == "transfers:c1"
        assert transfers_length_key("c1") == "transfers:length:c1"


class TestCampaigns:
    """Tests for campaign list storage."""

    @pytest.mark.asyncio
    async def test_replace_and_read_back(
        self, cache, fake_redis, registry_campaign, now
    ):
        campaign = Campaign.from_registry(registry_campaign, "arbitrum", now)
        fake_redis.data["campaigns:arbitrum"] = ["stale"]

        await cache.replace_campaigns("arbitrum", [campaign])

        assert len(fake_redis.data["campaigns:arbitrum"]) == 1
        assert await cache.get_campaigns("arbitrum") == [campaign]
        assert await cache.campaign_keys() == ["campaigns:arbitrum"]

    @pytest.mark.asyncio
    async def test_replace_with_nothing_clears(self, cache, fake_redis):
        fake_redis.data["campaigns:matic"] = ["stale"]

        await cache.replace_campaigns("matic", [])

        assert "campaigns:matic" not in fake_redis.data
        assert "rpush" not in fake_redis.calls


class TestTransfers:
    """Tests for transfer list storage."""

    @pytest.mark.asyncio
    async def test_replace_writes_list_and_counter(
        self, cache, fake_redis, make_log
    ):
        transfers = [decode_transfer(make_log(block_number=b)) for b in (1, 2, 3)]

        await cache.replace_transfers("c1", transfers)

        assert len(fake_redis.data["transfers:c1"]) == 3
        assert fake_redis.data["transfers:length:c1"] == "3"
        assert await cache.get_transfer_count("c1") == 3
        assert await cache.get_transfers("c1") == transfers
        assert fake_redis.calls == ["delete", "rpush", "set"]

    @pytest.mark.asyncio
    async def test_replace_overwrites_previous_list(
        self, cache, fake_redis, make_log
    ):
        await cache.replace_transfers(
            "c1", [decode_transfer(make_log(block_number=b)) for b in (1, 2)]
        )
        await cache.replace_transfers("c1", [decode_transfer(make_log(block_number=9))])

        assert len(fake_redis.data["transfers:c1"]) == 1
        assert await cache.get_transfer_count("c1") == 1

    @pytest.mark.asyncio
    async def test_empty_transfers(self, cache, fake_redis):
        fake_redis.data["transfers:c1"] = ["old"]

        await cache.replace_transfers("c1", [])

        assert "transfers:c1" not in fake_redis.data
        assert fake_redis.data["transfers:length:c1"] == "0"

    @pytest.mark.asyncio
    async def test_missing_counter_is_zero(self, cache, fake_redis):
        assert await cache.get_transfer_count("nope") == 0

        fake_redis.data["transfers:length:bad"] = "many"
        assert await cache.get_transfer_count("bad") == 0

    @pytest.mark.asyncio
    async def test_transfer_counts(self, cache, fake_redis):
        fake_redis.data.update(
            {
                "transfers:length:a": "2",
                "transfers:length:b": "5",
                "transfers:a": ["x", "y"],
            }
        )

        assert await cache.transfer_counts() == {"a": 2, "b": 5}

    @pytest.mark.asyncio
    async def test_corrupt_entry(self, cache, fake_redis):
        fake_redis.data["transfers:c1"] = ["{not json"]

        with pytest.raises(ParseError):
            await cache.get_transfers("c1")


class TestStats:
    @pytest.mark.asyncio
    async def test_stats_lifecycle(self, cache, fake_redis):
        assert await cache.get_stats() is None

        await cache.set_stats({"totalParticipations": 4})
        assert json.loads(fake_redis.data[STATS_KEY]) == {"totalParticipations": 4}
        assert await cache.get_stats() == {"totalParticipations": 4}

        await cache.delete_stats()
        assert await cache.get_stats() is None

    @pytest.mark.asyncio
    async def test_flush_all(self, cache, fake_redis):
        fake_redis.data["anything"] = "1"

        await cache.flush_all()

        assert fake_redis.data == {}


class TestFromUrl:
    def test_tls_url_skips_certificate_checks(self, monkeypatch):
        captured = {}

        def fake_from_url(url, **kwargs):
            captured["url"] = url
            captured.update(kwargs)
            return object()

        monkeypatch.setattr(
            "tide_indexer.shared.services.cache_service.redis.Redis.from_url",
            fake_from_url,
        )

        CacheStore.from_url("rediss://user:pw@host:6380")

        assert captured["ssl_cert_reqs"] == "none"
        assert captured["decode_responses"] is True

    def test_plain_url(self, monkeypatch):
        captured = {}
        monkeypatch.setattr(
            "tide_indexer.shared.services.cache_service.redis.Redis.from_url",
            lambda url, **kwargs: captured.update(kwargs),
        )

        CacheStore.from_url("redis://localhost:6379/0")

        assert "ssl_cert_reqs" not in captured
