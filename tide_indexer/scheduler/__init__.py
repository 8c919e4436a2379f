from tide_indexer.scheduler.driver import CycleResult, Driver
from tide_indexer.scheduler.ticker import PassKind, Tick, Ticker

__all__ = ["CycleResult", "Driver", "PassKind", "Tick", "Ticker"]
