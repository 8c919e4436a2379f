"""
Type definitions for Tide campaigns.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from tide_indexer.shared.constants import Network
from tide_indexer.shared.exceptions import ParseError

# =============================================================================
# ENUMS
# =============================================================================


class CampaignStatus(str, Enum):
    """Campaign status enumeration."""

    IDLE = "idle"  # Not started yet
    ACTIVE = "active"  # Between start and end (inclusive)
    ENDED = "ended"  # Past its end time


# =============================================================================
# HELPERS
# =============================================================================


def parse_datetime(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse a registry timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (with or without a trailing "Z"), epoch seconds
    and datetimes. Naive values are taken as UTC.

    Raises:
        ParseError: If the value cannot be interpreted
    """
    if isinstance(value, bool):
        raise ParseError(f"Invalid datetime: {value!r}")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ParseError(f"Invalid datetime: {value!r}")
    else:
        raise ParseError(f"Invalid datetime: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_datetime(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a "Z" suffix"""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_chain_ids(value: Any) -> Tuple[int, ...]:
    """
    Normalize a registry chainId field (single id or list of ids).

    Raises:
        ParseError: If an id is not an integer
    """
    chain_ids = value or []
    if isinstance(chain_ids, (int, str)):
        chain_ids = [chain_ids]
    try:
        return tuple(int(cid) for cid in chain_ids)
    except (TypeError, ValueError):
        raise ParseError(f"Campaign has invalid chainId: {value!r}")


def lists_chain(payload: Any, chain_id: int) -> bool:
    """Whether a registry entry is deployed on ``chain_id``"""
    if not isinstance(payload, Mapping):
        return False
    try:
        return chain_id in parse_chain_ids(payload.get("chainId"))
    except ParseError:
        return False


def get_campaign_status(
    start_time: datetime, end_time: datetime, now: datetime
) -> CampaignStatus:
    """
    Status of a campaign window at ``now``.

    The end instant itself still counts as active.
    """
    if now < start_time:
        return CampaignStatus.IDLE
    if now > end_time:
        return CampaignStatus.ENDED
    return CampaignStatus.ACTIVE


# =============================================================================
# DATACLASSES
# =============================================================================


@dataclass(frozen=True)
class Campaign:
    """
    A campaign as listed by the registry, scoped to one network.

    Campaigns are refreshed wholesale on each collection, so instances are
    immutable snapshots.
    """

    id: str
    address: str  # Contract emitting the Transfer events
    network: Network
    start_time: datetime
    end_time: datetime
    title: str = ""
    project_name: Optional[str] = None
    is_private: bool = False
    description: Optional[str] = None
    image_url: Optional[str] = None
    project_id: Optional[Union[int, str]] = None
    chain_ids: Tuple[int, ...] = ()
    status: CampaignStatus = CampaignStatus.IDLE

    def status_at(self, now: datetime) -> CampaignStatus:
        return get_campaign_status(self.start_time, self.end_time, now)

    @property
    def start_timestamp(self) -> int:
        return int(self.start_time.timestamp())

    @property
    def end_timestamp(self) -> int:
        return int(self.end_time.timestamp())

    @classmethod
    def from_registry(
        cls,
        payload: Mapping[str, Any],
        network: Union[str, Network],
        now: datetime,
    ) -> "Campaign":
        """
        Normalize one registry entry.

        Args:
            payload: Campaign object from the registry response
            network: Network the campaign is being indexed on
            now: Reference time for the status

        Raises:
            ParseError: If a required field is missing or mistyped
        """
        if not isinstance(payload, Mapping):
            raise ParseError(f"Campaign must be an object, got {payload!r}")

        for field in ("id", "address", "startTime", "endTime"):
            if payload.get(field) in (None, ""):
                raise ParseError(f"Campaign is missing '{field}': {payload!r}")

        address = payload["address"]
        if not isinstance(address, str):
            raise ParseError(f"Campaign has invalid address: {address!r}")

        chain_ids = parse_chain_ids(payload.get("chainId"))
        start_time = parse_datetime(payload["startTime"])
        end_time = parse_datetime(payload["endTime"])

        return cls(
            id=str(payload["id"]),
            address=address,
            network=Network.from_value(network),
            start_time=start_time,
            end_time=end_time,
            title=payload.get("title") or "",
            project_name=payload.get("projectName"),
            is_private=bool(payload.get("isPrivate", False)),
            description=payload.get("description"),
            image_url=payload.get("imageUrl"),
            project_id=payload.get("projectId"),
            chain_ids=chain_ids,
            status=get_campaign_status(start_time, end_time, now),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Campaign":
        """Rebuild a cached campaign, keeping its stored status."""
        try:
            network = payload["network"]
            campaign = cls.from_registry(
                payload, network, now=datetime.now(timezone.utc)
            )
        except KeyError as e:
            raise ParseError(f"Cached campaign is missing {e}")
        status = payload.get("status")
        if status:
            try:
                campaign = replace(campaign, status=CampaignStatus(status))
            except ValueError:
                raise ParseError(f"Cached campaign has invalid status: {status!r}")
        return campaign

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation, using the registry's keys."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "chainId": list(self.chain_ids),
            "startTime": format_datetime(self.start_time),
            "endTime": format_datetime(self.end_time),
            "status": self.status.value,
            "network": self.network.value,
            "projectName": self.project_name,
            "isPrivate": self.is_private,
            "imageUrl": self.image_url,
            "projectId": self.project_id,
            "address": self.address,
        }
