"""
Type definitions for indexing passes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from tide_indexer.campaigns.models import Campaign
from tide_indexer.shared.constants import Network
from tide_indexer.shared.results import ProcessingError


class OutcomeKind(str, Enum):
    SKIPPED = "skipped"  # Idle campaign, nothing fetched
    FAILED = "failed"  # Start/end block could not be resolved
    UP_TO_DATE = "up_to_date"  # Incremental pass found nothing new
    UPDATED = "updated"  # Transfers written to the cache


@dataclass(frozen=True)
class CampaignOutcome:
    """Result of indexing one campaign."""

    campaign_id: str
    kind: OutcomeKind
    transfers_found: int = 0
    cached_before: Optional[int] = None
    error: Optional[ProcessingError] = None

    @property
    def made_network_calls(self) -> bool:
        return self.kind is not OutcomeKind.SKIPPED

    @property
    def wrote(self) -> bool:
        return self.kind is OutcomeKind.UPDATED


@dataclass(frozen=True)
class IndexingPassResult:
    """Immutable record of one network pass."""

    network: Network
    only_update: bool
    campaigns: Tuple[Campaign, ...] = ()
    outcomes: Tuple[CampaignOutcome, ...] = ()
    errors: Tuple[ProcessingError, ...] = field(default_factory=tuple)

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind is kind)

    @property
    def updated(self) -> int:
        return self.count(OutcomeKind.UPDATED)

    @property
    def success(self) -> bool:
        return not self.errors
