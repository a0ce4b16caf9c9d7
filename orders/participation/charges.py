"""
Purpose: Delivery-charge math for participants.

charge = great-circle distance(supplier, vendor) in km * rate per km,
rounded half-up to the policy's decimal places.

Rule: Pure functions over domain objects; no store access.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from routing.distance import distance_between

from ..models import Coordinate, GroupOrder, Participant


def delivery_charge(
    supplier: Optional[Coordinate],
    vendor: Optional[Coordinate],
    rate_per_km: Decimal,
    decimal_places: int = 2,
) -> Optional[Decimal]:
    """
    None when either end of the trip is unknown.
    """
    if supplier is None or vendor is None:
        return None
    km = Decimal(repr(distance_between(supplier, vendor)))
    quantum = Decimal(1).scaleb(-decimal_places)
    return (km * Decimal(rate_per_km)).quantize(quantum, rounding=ROUND_HALF_UP)


def apply_delivery_charge(order: GroupOrder, participant: Participant, decimal_places: int = 2) -> None:
    participant.delivery_charge = delivery_charge(
        order.supplier_coordinate,
        participant.vendor_location,
        order.delivery_charge_per_km,
        decimal_places,
    )


def recalculate_all(order: GroupOrder, decimal_places: int = 2) -> int:
    """
    Recompute the charge of every participant with a known location, using
    the order's current supplier coordinate and rate. Returns how many were
    recomputed.
    """
    count = 0
    for participant in order.participants:
        if participant.vendor_location is None:
            continue
        apply_delivery_charge(order, participant, decimal_places)
        count += 1
    return count
