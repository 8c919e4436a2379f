"""
Type definitions for Transfer event logs.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from web3 import Web3

from tide_indexer.shared.exceptions import ParseError
from tide_indexer.utils.blockchain import (
    parse_optional_quantity,
    parse_quantity,
)

Timestamp = Union[str, int]


def _hex(value: Any) -> str:
    """Normalize str/bytes/HexBytes to a 0x-prefixed lowercase hex string"""
    if isinstance(value, str):
        return value.lower() if value[:2].lower() == "0x" else "0x" + value.lower()
    return Web3.to_hex(value)


@dataclass(frozen=True)
class RawLogEntry:
    """A log as delivered by the explorer or by eth_getLogs."""

    address: str
    topics: Tuple[str, ...]
    data: str
    block_number: int
    time_stamp: Optional[str] = None  # explorer only, hex or decimal string
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None

    @classmethod
    def from_explorer(cls, payload: Mapping[str, Any]) -> "RawLogEntry":
        """
        Validate one row of an explorer ``getLogs`` response.

        Raises:
            ParseError: If a required field is missing or mistyped
        """
        if not isinstance(payload, Mapping):
            raise ParseError(f"Log entry must be an object, got {payload!r}")

        topics = payload.get("topics")
        if not isinstance(topics, list) or not all(
            isinstance(t, str) for t in topics
        ):
            raise ParseError(f"Log entry has invalid topics: {topics!r}")

        address = payload.get("address")
        if not isinstance(address, str):
            raise ParseError(f"Log entry has invalid address: {address!r}")

        time_stamp = payload.get("timeStamp")
        if time_stamp is not None and not isinstance(time_stamp, (str, int)):
            raise ParseError(f"Log entry has invalid timeStamp: {time_stamp!r}")

        try:
            block_number = parse_quantity(payload.get("blockNumber"))
            log_index = parse_optional_quantity(payload.get("logIndex"))
        except ValueError as e:
            raise ParseError(f"Log entry has invalid quantity: {e}")

        tx_hash = payload.get("transactionHash")
        return cls(
            address=address.lower(),
            topics=tuple(_hex(t) for t in topics),
            data=str(payload.get("data") or "0x"),
            block_number=block_number,
            time_stamp=None if time_stamp is None else str(time_stamp),
            transaction_hash=tx_hash.lower() if isinstance(tx_hash, str) else None,
            log_index=log_index,
        )

    @classmethod
    def from_rpc(cls, log: Mapping[str, Any]) -> "RawLogEntry":
        """
        Convert a web3 log (AttributeDict with HexBytes values).

        Raises:
            ParseError: If a required field is missing
        """
        try:
            tx_hash = log.get("transactionHash")
            return cls(
                address=str(log["address"]).lower(),
                topics=tuple(_hex(t) for t in log["topics"]),
                data=_hex(log.get("data") or b""),
                block_number=parse_quantity(log["blockNumber"]),
                transaction_hash=_hex(tx_hash) if tx_hash is not None else None,
                log_index=parse_optional_quantity(log.get("logIndex")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Invalid RPC log entry: {e}")


@dataclass(frozen=True)
class TransferEvent:
    """A decoded Transfer event, optionally decorated for display."""

    from_address: str
    to_address: str
    token_id: Optional[str]
    timestamp: Optional[Timestamp]
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None

    # Display fields attached when persisting
    network: Optional[str] = None
    link: Optional[str] = None
    campaign: Optional[str] = None
    project: Optional[str] = None

    @property
    def dedup_key(self) -> Tuple[Any, ...]:
        """Identity used to merge overlapping explorer pages."""
        if self.transaction_hash is not None and self.log_index is not None:
            return (self.transaction_hash, self.log_index)
        return (
            self.from_address,
            self.to_address,
            self.token_id,
            self.timestamp,
            self.block_number,
        )

    def with_timestamp(self, timestamp: Timestamp) -> "TransferEvent":
        return replace(self, timestamp=timestamp)

    def with_display(
        self,
        *,
        network: str,
        link: str,
        campaign: str,
        project: Optional[str],
    ) -> "TransferEvent":
        return replace(
            self, network=network, link=link, campaign=campaign, project=project
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation stored in the cache."""
        return {
            "from": self.from_address,
            "to": self.to_address,
            "tokenId": self.token_id,
            "timestamp": self.timestamp,
            "blockNumber": self.block_number,
            "transactionHash": self.transaction_hash,
            "logIndex": self.log_index,
            "network": self.network,
            "link": self.link,
            "campaign": self.campaign,
            "project": self.project,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TransferEvent":
        try:
            return cls(
                from_address=payload["from"],
                to_address=payload["to"],
                token_id=payload.get("tokenId"),
                timestamp=payload.get("timestamp"),
                block_number=payload.get("blockNumber"),
                transaction_hash=payload.get("transactionHash"),
                log_index=payload.get("logIndex"),
                network=payload.get("network"),
                link=payload.get("link"),
                campaign=payload.get("campaign"),
                project=payload.get("project"),
            )
        except (KeyError, TypeError) as e:
            raise ParseError(f"Invalid cached transfer: {e}")
