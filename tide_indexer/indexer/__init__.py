from tide_indexer.indexer.models import (
    CampaignOutcome,
    IndexingPassResult,
    OutcomeKind,
)
from tide_indexer.indexer.service import CampaignIndexer

__all__ = [
    "CampaignIndexer",
    "CampaignOutcome",
    "IndexingPassResult",
    "OutcomeKind",
]
