"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests.
"""

import fnmatch
from datetime import datetime, timezone
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from tide_indexer.events.models import RawLogEntry
from tide_indexer.shared.constants import IndexerConstants
from tide_indexer.shared.logging import get_silent_logger
from tide_indexer.shared.services.cache_service import CacheStore
from tide_indexer.utils.blockchain import pad_address


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (decode_responses=True)."""

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.calls: List[str] = []

    async def delete(self, *keys):
        self.calls.append("delete")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def rpush(self, key, *values):
        self.calls.append("rpush")
        self.data.setdefault(key, []).extend(str(v) for v in values)
        return len(self.data[key])

    async def lrange(self, key, start, end):
        values = self.data.get(key, [])
        return list(values[start:] if end == -1 else values[start : end + 1])

    async def set(self, key, value):
        self.calls.append("set")
        self.data[key] = str(value)
        return True

    async def get(self, key):
        return self.data.get(key)

    async def mget(self, keys, *args):
        return [self.data.get(key) for key in [*keys, *args]]

    async def flushall(self):
        self.calls.append("flushall")
        self.data.clear()
        return True

    async def scan_iter(self, match=None):
        for key in sorted(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self):
        return None

    @property
    def writes(self) -> List[str]:
        return [c for c in self.calls if c in ("delete", "rpush", "set")]


@pytest.fixture
def silent_logger():
    return get_silent_logger()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis, silent_logger) -> CacheStore:
    return CacheStore(fake_redis, logger=silent_logger)


@pytest.fixture
def now() -> datetime:
    return datetime(2023, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def campaign_address() -> str:
    """Sample campaign contract address for tests."""
    return "0x6d3c1b5c0a4e1d7b9f8c2a3e4d5f6a7b8c9d0e1f"


@pytest.fixture
def user_address() -> str:
    """Sample recipient address for tests."""
    return "0x52f541764E6e90eeBc5c21Ff570De0e2D63766B6"


@pytest.fixture
def registry_campaign(campaign_address) -> Dict[str, Any]:
    """Sample registry entry, active at the `now` fixture on arbitrum."""
    return {
        "id": "c1",
        "title": "Bridge Quest",
        "description": "Bridge to Arbitrum",
        "chainId": [42161],
        "startTime": "2023-05-01T00:00:00.000Z",
        "endTime": "2023-07-01T00:00:00.000Z",
        "projectName": "Tide",
        "isPrivate": False,
        "imageUrl": "https://example.org/c1.png",
        "projectId": 7,
        "address": campaign_address,
    }


def make_raw_log(
    block_number: int,
    log_index: int = 0,
    to: str = "0x52f541764E6e90eeBc5c21Ff570De0e2D63766B6",
    token_id: int = 1,
    tx_hash: str = None,
    time_stamp: str = "0x647f0a00",
    address: str = "0x6d3c1b5c0a4e1d7b9f8c2a3e4d5f6a7b8c9d0e1f",
) -> RawLogEntry:
    """Build a mint Transfer log."""
    return RawLogEntry(
        address=address,
        topics=(
            IndexerConstants.TRANSFER_EVENT_TOPIC,
            IndexerConstants.ZERO_TOPIC,
            pad_address(to),
            "0x" + format(token_id, "064x"),
        ),
        data="0x",
        block_number=block_number,
        time_stamp=time_stamp,
        transaction_hash=tx_hash or "0x" + format(block_number * 1000 + log_index, "064x"),
        log_index=log_index,
    )


def explorer_row(raw: RawLogEntry) -> Dict[str, Any]:
    """Explorer JSON representation of a RawLogEntry."""
    return {
        "address": raw.address,
        "topics": list(raw.topics),
        "data": raw.data,
        "blockNumber": hex(raw.block_number),
        "timeStamp": raw.time_stamp,
        "transactionHash": raw.transaction_hash,
        "logIndex": hex(raw.log_index),
    }


@pytest.fixture
def make_log():
    """Factory for Transfer logs."""
    return make_raw_log


@pytest.fixture
def to_explorer_row():
    return explorer_row


@pytest.fixture
def mock_web3_service():
    """Mock Web3Service for unit tests."""
    service = MagicMock()
    service.get_block_number = AsyncMock(return_value=1_000_000)
    service.get_logs = AsyncMock(return_value=[])
    return service


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line("markers", "slow: mark test as slow-running")
