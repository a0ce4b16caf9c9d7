"""
Purpose: Domain models for the group-buying Orders capability.
What it does:
- Defines core data structures:
- GroupOrder (supplier deal with min/max thresholds, status, participants)
- Participant (one vendor's commitment inside one order)
- OrderDraft (the supplier-editable fields used by create/edit)
- Coordinate / Location (structured replacement for "text [lat,lng]")

Defines enums/constants:
- OrderStatus = OPEN | ACCEPTED | COMPLETED | CANCELLED | EXPIRED

Rule: No store calls, no status transitions. Models only.
"""
from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

LatLng = Tuple[float, float]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# Statuses in which vendors may still change their commitment.
ACTIVE_STATUSES = (OrderStatus.OPEN, OrderStatus.ACCEPTED)
TERMINAL_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def as_tuple(self) -> LatLng:
        return (self.lat, self.lng)


@dataclass(frozen=True)
class Location:
    """
    A human readable address plus the coordinate used for delivery pricing.
    The coordinate is optional only for legacy imported records.
    """
    address: str
    coordinate: Optional[Coordinate] = None


@dataclass
class Participant:
    """
    A vendor's commitment to a group order.
    delivery_charge is derived from the distance between supplier and vendor;
    it stays None until both coordinates are known.
    """
    id: str
    order_id: str
    vendor_id: str
    vendor_name: str
    quantity: int
    joined_at: datetime = field(default_factory=utcnow)
    vendor_location: Optional[Coordinate] = None
    vendor_phone: Optional[str] = None
    delivery_charge: Optional[Decimal] = None
    has_reviewed: bool = False

    @staticmethod # Factory method with a fresh id and join timestamp
    def new(
        order_id: str,
        vendor_id: str,
        vendor_name: str,
        quantity: int,
        vendor_location: Optional[Coordinate] = None,
        vendor_phone: Optional[str] = None,
    ) -> Participant:
        return Participant(
            id=str(uuid.uuid4()),
            order_id=order_id,
            vendor_id=vendor_id,
            vendor_name=vendor_name,
            quantity=quantity,
            vendor_location=vendor_location,
            vendor_phone=vendor_phone,
        )


@dataclass(frozen=True)
class OrderDraft:
    """
    Supplier input for create and edit. Validated by orders.validation
    before it reaches a store.
    """
    item: str
    description: str
    bulk_price: Decimal
    original_price: Decimal
    min_quantity: int
    max_quantity: int
    deadline: Optional[date]
    location: Location
    delivery_charge_per_km: Decimal
    contact_phone: str
    unit: str = "kg"


# Fields an OrderDraft carries onto a GroupOrder.
DRAFT_FIELDS = (
    "item",
    "description",
    "unit",
    "bulk_price",
    "original_price",
    "min_quantity",
    "max_quantity",
    "deadline",
    "location",
    "delivery_charge_per_km",
    "contact_phone",
)


@dataclass
class GroupOrder:
    """
    A supplier's bulk deal. total_quantity is derived from participants and is
    re-derived by the store on every write and read; never patch it directly.
    """
    id: str
    supplier_id: str
    supplier_name: str
    item: str
    description: str
    bulk_price: Decimal
    original_price: Decimal
    min_quantity: int
    max_quantity: int
    deadline: date
    location: Location
    delivery_charge_per_km: Decimal
    contact_phone: str
    unit: str = "kg"

    status: OrderStatus = OrderStatus.OPEN
    created_at: datetime = field(default_factory=utcnow)
    participants: List[Participant] = field(default_factory=list)
    total_quantity: int = 0

    # bumped by the store on every write to the aggregate
    version: int = 0

    @staticmethod
    def new(draft: OrderDraft, supplier_id: str, supplier_name: str) -> GroupOrder:
        return GroupOrder(
            id=str(uuid.uuid4()),
            supplier_id=supplier_id,
            supplier_name=supplier_name,
            **{name: getattr(draft, name) for name in DRAFT_FIELDS},
        )

    @property
    def supplier_coordinate(self) -> Optional[Coordinate]:
        return self.location.coordinate

    @property
    def remaining_quantity(self) -> int:
        return max(0, self.max_quantity - self.total_quantity)

    def recompute_total(self) -> int:
        self.total_quantity = sum(p.quantity for p in self.participants)
        return self.total_quantity

    def find_participant(self, vendor_id: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.vendor_id == vendor_id:
                return participant
        return None

    def is_past_deadline(self, now: Optional[datetime] = None) -> bool:
        """
        The deadline date is read as UTC midnight at the start of that day;
        from that instant on the deadline has passed.
        """
        now = now or utcnow()
        return now >= datetime.combine(self.deadline, time.min, tzinfo=timezone.utc)

    def to_draft(self) -> OrderDraft:
        return OrderDraft(**{name: getattr(self, name) for name in DRAFT_FIELDS})

    def clone(self) -> GroupOrder:
        return copy.deepcopy(self)
