"""Shared formatting utilities for commands."""

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from tide_indexer.indexer.models import IndexingPassResult

# Shared console instance
console = Console()


def format_address(address: Optional[str], length: int = 10) -> str:
    """
    Format an Ethereum address to show first and last characters.

    Args:
        address: Ethereum address
        length: Total visible characters (default: 10)

    Returns:
        Formatted address like "0x1234...5678"
    """
    if not address:
        return "N/A"
    if len(address) <= length:
        return address
    return f"{address[:6]}...{address[-4:]}"


def pass_table(result: IndexingPassResult) -> Table:
    """Per-campaign outcomes of one indexing pass"""
    mode = "incremental" if result.only_update else "full"
    table = Table(title=f"{result.network.value} ({mode} pass)")
    table.add_column("Campaign", style="cyan")
    table.add_column("Outcome")
    table.add_column("Found", justify="right")
    table.add_column("Cached before", justify="right")

    for outcome in result.outcomes:
        table.add_row(
            outcome.campaign_id,
            outcome.kind.value,
            str(outcome.transfers_found),
            "-" if outcome.cached_before is None else str(outcome.cached_before),
        )
    return table


def stats_tables(stats: Dict[str, Any]) -> List[Table]:
    """Rich rendering of the cached stats document"""
    summary = Table(title="Tide stats")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    summary.add_row("Campaigns", str(len(stats.get("campaignIds") or [])))
    summary.add_row("Participations", str(stats.get("totalParticipations", 0)))
    summary.add_row("Unique users", str(stats.get("uniqueUsers", 0)))
    summary.add_row("Calculated at", str(stats.get("calculatedAt") or "N/A"))

    top = Table(title="Top campaigns by participants")
    top.add_column("Campaign", style="cyan")
    top.add_column("Network")
    top.add_column("Status")
    top.add_column("Participants", justify="right")
    for campaign in stats.get("top10CampaignsSortedByParticipants") or []:
        top.add_row(
            campaign.get("title") or campaign.get("id", ""),
            campaign.get("network") or "",
            campaign.get("status") or "",
            str(campaign.get("participants", 0)),
        )

    claims = Table(title="Latest claims")
    claims.add_column("Date")
    claims.add_column("Campaign", style="cyan")
    claims.add_column("User")
    claims.add_column("Token", justify="right")
    for claim in stats.get("last20ClaimsSortedByDate") or []:
        claims.add_row(
            claim.get("date") or "N/A",
            claim.get("campaign") or "",
            format_address(claim.get("address")),
            str(claim.get("tokenId") or "-"),
        )

    return [summary, top, claims]
