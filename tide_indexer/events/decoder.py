"""
Decoding of ERC-721 style Transfer logs.

event Transfer(address indexed from, address indexed to, uint256 indexed tokenId)

Every argument is indexed, so the whole event lives in the topics:
topics[1] = from, topics[2] = to, topics[3] = tokenId (absent for fungible
transfers, where the amount sits in ``data`` and is not decoded here).
"""

from typing import Iterable, List

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, to_checksum_address

from tide_indexer.events.models import RawLogEntry, TransferEvent
from tide_indexer.shared.exceptions import DecodeError

TOPIC_SIZE = 32


def _topic_bytes(topic: str, position: int) -> bytes:
    try:
        raw = decode_hex(topic)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"topics[{position}] is not hex: {topic!r} ({e})")
    if len(raw) != TOPIC_SIZE:
        raise DecodeError(
            f"topics[{position}] must be {TOPIC_SIZE} bytes, got {len(raw)}"
        )
    return raw


def _decode_topic(abi_type: str, topic: str, position: int):
    try:
        return decode([abi_type], _topic_bytes(topic, position))[0]
    except DecodingError as e:
        raise DecodeError(f"topics[{position}] is not a valid {abi_type}: {e}")


def decode_transfer(raw: RawLogEntry) -> TransferEvent:
    """
    Decode a raw Transfer log.

    Args:
        raw: Log entry from the explorer or RPC

    Returns:
        TransferEvent with checksummed addresses and a stringified tokenId
        (None when the log carries no topics[3])

    Raises:
        DecodeError: If the topics do not follow the Transfer layout
    """
    if len(raw.topics) < 3:
        raise DecodeError(
            f"Transfer log needs at least 3 topics, got {len(raw.topics)}"
        )

    # eth-abi returns lowercase addresses from 6.x on
    from_address = to_checksum_address(
        _decode_topic("address", raw.topics[1], 1)
    )
    to_address = to_checksum_address(
        _decode_topic("address", raw.topics[2], 2)
    )

    token_id = None
    if len(raw.topics) > 3:
        token_id = str(_decode_topic("uint256", raw.topics[3], 3))

    return TransferEvent(
        from_address=from_address,
        to_address=to_address,
        token_id=token_id,
        timestamp=raw.time_stamp,
        block_number=raw.block_number,
        transaction_hash=raw.transaction_hash,
        log_index=raw.log_index,
    )


def decode_transfers(raws: Iterable[RawLogEntry]) -> List[TransferEvent]:
    return [decode_transfer(raw) for raw in raws]
