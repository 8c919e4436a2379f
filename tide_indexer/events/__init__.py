"""Transfer event decoding for the Tide indexer."""

from .decoder import decode_transfer, decode_transfers
from .models import RawLogEntry, TransferEvent

__all__ = [
    "RawLogEntry",
    "TransferEvent",
    "decode_transfer",
    "decode_transfers",
]
