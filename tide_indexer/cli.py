#!/usr/bin/env python3
"""
CLI for the Tide campaign indexer.

Examples:
  - Indexing loop (full pass, then an incremental pass every 5 minutes)
    tide-indexer run
    tide-indexer run --no-flush --fetch-method rpc --network arbitrum

  - Single pass
    tide-indexer index --network matic [--only-update]

  - Stats
    tide-indexer stats [--recompute] [--json]

  - Cache
    tide-indexer flush
"""

import argparse
import asyncio
import json
from typing import List, Optional

from tide_indexer.analytics.service import StatsAggregator
from tide_indexer.chain.time_mapper import ChainTimeMapper
from tide_indexer.indexer.service import CampaignIndexer
from tide_indexer.scheduler.driver import Driver
from tide_indexer.scheduler.ticker import Ticker
from tide_indexer.shared.config import FETCH_METHODS, Settings
from tide_indexer.shared.constants import Network
from tide_indexer.shared.logging import get_logger
from tide_indexer.shared.registry import CampaignRegistry
from tide_indexer.shared.services.cache_service import CacheStore
from tide_indexer.shared.services.explorer_service import ExplorerService
from tide_indexer.shared.services.http_client import aclose_async_client
from tide_indexer.shared.services.web3_service import Web3Service
from tide_indexer.transfers.fetchers import build_fetcher
from tide_indexer.utils.formatters import console, pass_table, stats_tables

NETWORK_CHOICES = [network.value for network in Network]


def build_indexer(
    settings: Settings,
    network: Network,
    cache: CacheStore,
    registry: CampaignRegistry,
    fetch_method: Optional[str] = None,
    mints_only: bool = False,
) -> CampaignIndexer:
    """Wire an indexer for one network from the settings"""
    logger = get_logger(f"tide_indexer.{network.value}", settings.log_level)
    explorer = ExplorerService(
        network, settings.explorer_api_key(network), logger=logger
    )
    web3_service = Web3Service(network, settings.rpc_url(network))
    fetcher = build_fetcher(
        fetch_method or settings.fetch_method,
        network,
        explorer,
        web3_service,
        mints_only=mints_only,
        logger=logger,
    )
    return CampaignIndexer(
        network,
        registry,
        cache,
        fetcher,
        ChainTimeMapper(network, explorer),
        pace_seconds=settings.pace_seconds,
        logger=logger,
    )


def _networks(args: argparse.Namespace) -> List[Network]:
    names = getattr(args, "network", None) or NETWORK_CHOICES
    if isinstance(names, str):
        names = [names]
    return [Network.from_value(name) for name in names]


async def _close(cache: CacheStore) -> None:
    await cache.close()
    await aclose_async_client()


def cmd_run(args: argparse.Namespace) -> None:
    async def run():
        settings = Settings.from_env()
        cache = CacheStore.from_url(settings.redis_url)
        registry = CampaignRegistry(settings.registry_url)
        try:
            indexers = [
                build_indexer(
                    settings,
                    network,
                    cache,
                    registry,
                    fetch_method=args.fetch_method,
                    mints_only=args.mints_only,
                )
                for network in _networks(args)
            ]
            driver = Driver(
                indexers,
                StatsAggregator(cache),
                cache,
                Ticker(
                    args.interval
                    if args.interval is not None
                    else settings.poll_interval_seconds
                ),
                flush_on_start=not args.no_flush,
            )
            await driver.run()
        finally:
            await _close(cache)

    asyncio.run(run())


def cmd_index(args: argparse.Namespace) -> None:
    async def run():
        settings = Settings.from_env()
        cache = CacheStore.from_url(settings.redis_url)
        registry = CampaignRegistry(settings.registry_url)
        try:
            indexer = build_indexer(
                settings,
                Network.from_value(args.network),
                cache,
                registry,
                fetch_method=args.fetch_method,
                mints_only=args.mints_only,
            )
            result = await indexer.index_all_campaigns(
                only_update=args.only_update
            )
        finally:
            await _close(cache)

        console.print(pass_table(result))
        console.print(
            f"Campaigns: {len(result.campaigns)} | updated: {result.updated}"
        )
        for error in result.errors:
            console.print(
                f"[yellow]{error.severity.value}[/yellow] "
                f"{error.source}: {error.message}"
            )

    asyncio.run(run())


def cmd_stats(args: argparse.Namespace) -> None:
    async def run():
        settings = Settings.from_env()
        cache = CacheStore.from_url(settings.redis_url)
        try:
            if args.recompute:
                stats = (await StatsAggregator(cache).calculate_stats()).to_dict()
            else:
                stats = await cache.get_stats()
        finally:
            await _close(cache)

        if stats is None:
            console.print("[yellow]No stats cached yet[/yellow]")
            return
        if args.json:
            console.print_json(json.dumps(stats))
            return
        for table in stats_tables(stats):
            console.print(table)

    asyncio.run(run())


def cmd_flush(args: argparse.Namespace) -> None:
    async def run():
        settings = Settings.from_env()
        cache = CacheStore.from_url(settings.redis_url)
        try:
            await cache.flush_all()
        finally:
            await _close(cache)
        console.print("[green]✓ Cache flushed[/green]")

    asyncio.run(run())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tide-indexer",
        description="Index Tide campaign transfers into Redis",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # run
    p_run = sub.add_parser("run", help="Run the indexing loop")
    p_run.add_argument(
        "--no-flush",
        action="store_true",
        help="Keep the cache instead of flushing it on start",
    )
    p_run.add_argument("--fetch-method", type=str, choices=FETCH_METHODS)
    p_run.add_argument(
        "--interval", type=float, help="Seconds between incremental passes"
    )
    p_run.add_argument(
        "--network", type=str, nargs="+", choices=NETWORK_CHOICES
    )
    p_run.add_argument(
        "--mints-only",
        action="store_true",
        help="Only index transfers from the zero address",
    )
    p_run.set_defaults(func=cmd_run)

    # index
    p_index = sub.add_parser("index", help="Run a single indexing pass")
    p_index.add_argument(
        "--network", type=str, required=True, choices=NETWORK_CHOICES
    )
    p_index.add_argument("--only-update", action="store_true")
    p_index.add_argument("--fetch-method", type=str, choices=FETCH_METHODS)
    p_index.add_argument("--mints-only", action="store_true")
    p_index.set_defaults(func=cmd_index)

    # stats
    p_stats = sub.add_parser("stats", help="Show the cached stats")
    p_stats.add_argument(
        "--recompute", action="store_true", help="Recalculate before showing"
    )
    p_stats.add_argument("--json", action="store_true", help="Output JSON")
    p_stats.set_defaults(func=cmd_stats)

    # flush
    p_flush = sub.add_parser("flush", help="Flush the Redis cache")
    p_flush.set_defaults(func=cmd_flush)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise


if __name__ == "__main__":
    main()
