"""
Purpose: The participation "orchestrator" (single entry point for vendor actions).
What it does:

Enforces the quantity invariants when vendors join, edit or leave an order:

- join: status must be open, one participation per vendor, quantity > 0,
  total + quantity <= max; crossing min flips open -> accepted

- update_quantity: same capacity rule on the delta; any real change to an
  accepted order re-opens it (the supplier must re-accept)

- update_contact: phone / location; a new location re-prices delivery

- remove: deletes the participation; an accepted order re-opens

- recalculate_delivery_charges: bulk re-pricing after a supplier edit

Every mutation is one store.transaction(): validation happens on the copy
before anything is written, total_quantity is re-derived from participants
inside the same transaction, and events fire only after commit.

Rule: User-initiated operations surface transport/conflict errors
immediately; they are never retried here.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from ..errors import CapacityExceededError, DuplicateParticipationError, NotFoundError, OrderStateError, ValidationError
from ..events import JOINED, LEFT, UPDATED, OrderEvents
from ..models import Coordinate, GroupOrder, Location, OrderStatus, Participant
from ..store import OrderStore
from ..validation import to_decimal, validate_phone, validate_quantity
from .charges import apply_delivery_charge, recalculate_all
from .policy import ParticipationPolicy, default_policy

logger = logging.getLogger(__name__)


class ParticipationEngine:
    """
    Vendor-side operations on a group order.
    """

    def __init__(
        self,
        store: OrderStore,
        events: Optional[OrderEvents] = None,
        policy: Optional[ParticipationPolicy] = None,
    ):
        self.store = store
        self.events = events or OrderEvents()
        self.policy = policy or default_policy()

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.policy.store_timeout_seconds if timeout is None else timeout

    @staticmethod
    def _participant(order: GroupOrder, vendor_id: str) -> Participant:
        participant = order.find_participant(vendor_id)
        if participant is None:
            raise NotFoundError("Participant", f"{vendor_id} in order {order.id}")
        return participant

    # --- Public API ---

    def join(
        self,
        order_id: str,
        vendor_id: str,
        vendor_name: str,
        quantity: int,
        vendor_location: Optional[Coordinate] = None,
        vendor_phone: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Participant:
        """
        Commit `quantity` units of the order to a vendor.

        Raises OrderStateError (order not open), DuplicateParticipationError,
        ValidationError (quantity / phone), CapacityExceededError.
        """
        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            if order.status != OrderStatus.OPEN:
                raise OrderStateError(f"Order {order_id} is {order.status.value}; only open orders accept vendors")

            existing = order.find_participant(vendor_id)
            if existing is not None:
                raise DuplicateParticipationError(order_id, vendor_id, existing.id)

            validate_quantity(quantity)
            if vendor_phone is not None:
                validate_phone(vendor_phone, "vendor_phone")

            if order.total_quantity + quantity > order.max_quantity:
                raise CapacityExceededError(quantity, order.remaining_quantity, order.unit)

            participant = Participant.new(
                order_id=order_id,
                vendor_id=vendor_id,
                vendor_name=vendor_name,
                quantity=quantity,
                vendor_location=vendor_location,
                vendor_phone=vendor_phone,
            )
            apply_delivery_charge(order, participant, self.policy.charge_decimal_places)
            order.participants.append(participant)

            old_status = order.status
            if order.recompute_total() >= order.min_quantity:
                order.status = OrderStatus.ACCEPTED

        logger.info("Vendor %s joined order %s with %d %s", vendor_id, order_id, quantity, order.unit)
        self.events.participant_changed(order, participant, JOINED)
        self.events.status_changed(order, old_status, order.status)
        return participant

    def update_quantity(
        self,
        order_id: str,
        vendor_id: str,
        new_quantity: int,
        *,
        timeout: Optional[float] = None,
    ) -> Participant:
        """
        Change a vendor's committed quantity.

        A change to an accepted order always re-opens it, even if the new
        total still clears the minimum: acceptance was the supplier's
        confirmation of the old quantities.
        """
        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            participant = self._participant(order, vendor_id)
            if order.status not in (OrderStatus.OPEN, OrderStatus.ACCEPTED):
                raise OrderStateError(f"Order {order_id} is {order.status.value}; quantities are locked")

            validate_quantity(new_quantity)
            delta = new_quantity - participant.quantity
            if delta == 0:
                return participant

            if order.total_quantity + delta > order.max_quantity:
                remaining = order.max_quantity - order.total_quantity + participant.quantity
                raise CapacityExceededError(new_quantity, remaining, order.unit)

            participant.quantity = new_quantity
            old_status = order.status
            total = order.recompute_total()
            if old_status == OrderStatus.ACCEPTED:
                order.status = OrderStatus.OPEN
            elif total >= order.min_quantity:
                order.status = OrderStatus.ACCEPTED

        self.events.participant_changed(order, participant, UPDATED)
        self.events.status_changed(order, old_status, order.status)
        return participant

    def update_contact(
        self,
        order_id: str,
        vendor_id: str,
        vendor_phone: Optional[str] = None,
        vendor_location: Optional[Coordinate] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Participant:
        """
        Update phone and/or location. A new location re-prices delivery.
        """
        if vendor_phone is not None:
            validate_phone(vendor_phone, "vendor_phone")

        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            participant = self._participant(order, vendor_id)
            changed = False
            if vendor_phone is not None and vendor_phone != participant.vendor_phone:
                participant.vendor_phone = vendor_phone
                changed = True
            if vendor_location is not None and vendor_location != participant.vendor_location:
                participant.vendor_location = vendor_location
                apply_delivery_charge(order, participant, self.policy.charge_decimal_places)
                changed = True

        if changed:
            self.events.participant_changed(order, participant, UPDATED)
        return participant

    def remove(self, order_id: str, vendor_id: str, *, timeout: Optional[float] = None) -> Participant:
        """
        Withdraw a vendor. An accepted order always re-opens.
        """
        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            participant = self._participant(order, vendor_id)
            if order.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
                raise OrderStateError(f"Order {order_id} is {order.status.value}; participants can no longer leave")

            order.participants = [p for p in order.participants if p.vendor_id != vendor_id]
            order.recompute_total()
            old_status = order.status
            if old_status == OrderStatus.ACCEPTED:
                order.status = OrderStatus.OPEN

        self.events.participant_changed(order, participant, LEFT)
        self.events.status_changed(order, old_status, order.status)
        return participant

    def recalculate_delivery_charges(
        self,
        order_id: str,
        supplier_coordinate: Optional[Coordinate] = None,
        rate_per_km: Optional[Decimal] = None,
        *,
        timeout: Optional[float] = None,
    ) -> int:
        """
        Re-price every participant with a location. With no overrides the
        order's current coordinate and rate are used. Returns the number of
        participants re-priced.
        """
        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            if supplier_coordinate is not None:
                order.location = Location(order.location.address, supplier_coordinate)
            if rate_per_km is not None:
                rate = to_decimal(rate_per_km, "delivery_charge_per_km")
                if rate < 0:
                    raise ValidationError("delivery_rate_non_negative", "Delivery charge per km cannot be negative")
                order.delivery_charge_per_km = rate
            count = recalculate_all(order, self.policy.charge_decimal_places)

        logger.info("Recalculated delivery charges for %d participants of order %s", count, order_id)
        return count

    def mark_reviewed(self, order_id: str, vendor_id: str, *, timeout: Optional[float] = None) -> Participant:
        """
        Record that a vendor reviewed a completed order. Allowed once.
        """
        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            participant = self._participant(order, vendor_id)
            if order.status != OrderStatus.COMPLETED:
                raise OrderStateError(
                    f"Order {order_id} is {order.status.value}; reviews open after completion",
                    rule="review_requires_completed",
                )
            if participant.has_reviewed:
                raise ValidationError("already_reviewed", f"Vendor {vendor_id} already reviewed order {order_id}")
            participant.has_reviewed = True

        self.events.participant_changed(order, participant, UPDATED)
        return participant
