"""
Pass scheduling.

The first tick requests a full pass immediately. Every following tick comes
one interval later and requests an incremental pass.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from tide_indexer.shared.constants import IndexerConstants


class PassKind(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass(frozen=True)
class Tick:
    kind: PassKind
    sequence: int

    @property
    def only_update(self) -> bool:
        return self.kind is PassKind.INCREMENTAL


class Ticker:
    """
    Async iterator of ticks.

    Args:
        interval_seconds: Delay between two ticks
        sleep: Awaitable sleep (injected in tests)
        limit: Stop after this many ticks (None runs forever)
    """

    def __init__(
        self,
        interval_seconds: float = IndexerConstants.POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        limit: Optional[int] = None,
    ):
        self.interval_seconds = interval_seconds
        self.sleep = sleep
        self.limit = limit

    async def ticks(self) -> AsyncIterator[Tick]:
        sequence = 0
        while self.limit is None or sequence < self.limit:
            if sequence > 0:
                await self.sleep(self.interval_seconds)
            kind = PassKind.FULL if sequence == 0 else PassKind.INCREMENTAL
            yield Tick(kind=kind, sequence=sequence)
            sequence += 1

    def __aiter__(self) -> AsyncIterator[Tick]:
        return self.ticks()
