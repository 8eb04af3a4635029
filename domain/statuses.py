"""Closed status enums for campaigns, entries, shipments and SNS links.

Statuses are persisted as plain strings; these enums are the only values the
domain accepts. ``parse_status`` is the boundary check used by every write path.
"""

from enum import Enum
from typing import TypeVar

from domain.errors import ValidationError


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    COMPLETED = "completed"


class EntryStatus(str, Enum):
    PENDING = "pending"
    WINNER = "winner"
    LOSER = "loser"
    SHIPPED = "shipped"
    COMPLETED = "completed"


class ShipmentStatus(str, Enum):
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    FAILED = "failed"


class SnsType(str, Enum):
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    LINE = "line"


# Expected forward path of an entry. Admin writes are never restricted to it.
ENTRY_TRANSITIONS: dict[EntryStatus, set[EntryStatus]] = {
    EntryStatus.PENDING: {EntryStatus.WINNER, EntryStatus.LOSER},
    EntryStatus.WINNER: {EntryStatus.SHIPPED},
    EntryStatus.LOSER: set(),
    EntryStatus.SHIPPED: {EntryStatus.COMPLETED},
    EntryStatus.COMPLETED: set(),
}

SHIPMENT_TRANSITIONS: dict[ShipmentStatus, set[ShipmentStatus]] = {
    ShipmentStatus.PREPARING: {ShipmentStatus.SHIPPED, ShipmentStatus.FAILED},
    ShipmentStatus.SHIPPED: {ShipmentStatus.DELIVERED, ShipmentStatus.FAILED},
    ShipmentStatus.DELIVERED: set(),
    ShipmentStatus.FAILED: {ShipmentStatus.PREPARING},
}

_E = TypeVar("_E", bound=Enum)


def parse_status(enum_cls: type[_E], value, field: str = "Status") -> _E:
    """Coerce ``value`` into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} '{value}' is not valid (allowed: {allowed})")


def is_expected_transition(graph: dict, current: Enum, new: Enum) -> bool:
    """True if ``current -> new`` follows ``graph`` (or is a no-op)."""
    return current == new or new in graph.get(current, set())
