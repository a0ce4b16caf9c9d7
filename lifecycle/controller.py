"""
Purpose: Supplier-side entry point for a group order's lifecycle.
What it does:

- create: validate the draft, persist an open order
- edit: only while open; re-prices every participant in the same
  transaction when the supplier moves or changes the per-km rate
- accept / process_early: open|accepted -> accepted (needs >= 1 participant)
- complete: accepted -> completed
- cancel: open|accepted -> cancelled, all participations dropped
- delete: cancelled|completed orders only, participants cascade

Vendor actions (join, edit quantity, leave) live in
orders.participation.ParticipationEngine; this controller shares its store,
events and policy.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional

from orders.errors import ValidationError
from orders.events import LEFT, OrderEvents
from orders.models import DRAFT_FIELDS, GroupOrder, OrderDraft
from orders.participation.charges import recalculate_all
from orders.participation.engine import ParticipationEngine
from orders.participation.policy import ParticipationPolicy, default_policy
from orders.store import OrderStore
from orders.validation import to_decimal, validate_new_deadline, validate_order_draft

from .state_machines.order_state import accept_order, cancel_order, complete_order, ensure_deletable, ensure_editable

logger = logging.getLogger(__name__)


@dataclass
class EditResult:
    order: GroupOrder
    # 0 means a plain field update, no delivery re-pricing
    recalculated_participants: int = 0


def clean_draft(draft: OrderDraft) -> OrderDraft:
    """
    Validate and normalise money fields to Decimal.
    """
    validate_order_draft(draft)
    return dataclasses.replace(
        draft,
        item=draft.item.strip(),
        description=draft.description.strip(),
        bulk_price=to_decimal(draft.bulk_price, "bulk_price"),
        original_price=to_decimal(draft.original_price, "original_price"),
        delivery_charge_per_km=to_decimal(draft.delivery_charge_per_km, "delivery_charge_per_km"),
    )


class OrderLifecycleController:
    def __init__(
        self,
        store: OrderStore,
        engine: Optional[ParticipationEngine] = None,
        events: Optional[OrderEvents] = None,
        policy: Optional[ParticipationPolicy] = None,
    ):
        self.store = store
        self.policy = policy or (engine.policy if engine else default_policy())
        self.events = events or (engine.events if engine else OrderEvents())
        self.engine = engine or ParticipationEngine(store, self.events, self.policy)

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.policy.store_timeout_seconds if timeout is None else timeout

    def create(self, draft: OrderDraft, supplier_id: str, supplier_name: str) -> GroupOrder:
        draft = clean_draft(draft)
        validate_new_deadline(draft.deadline)
        order = self.store.create_order(draft, supplier_id, supplier_name)
        logger.info("Supplier %s posted order %s (%s)", supplier_id, order.id, order.item)
        return order

    def edit(self, order_id: str, draft: OrderDraft, *, timeout: Optional[float] = None) -> EditResult:
        """
        Replace the supplier-editable fields of an open order.

        max_quantity may not drop below what vendors already committed.
        """
        draft = clean_draft(draft)

        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            ensure_editable(order)
            if draft.max_quantity < order.total_quantity:
                raise ValidationError(
                    "max_below_committed",
                    f"Maximum quantity cannot be lower than the {order.total_quantity}{order.unit} already committed",
                )

            repricing = (
                draft.location.coordinate != order.supplier_coordinate
                or draft.delivery_charge_per_km != order.delivery_charge_per_km
            )
            for name in DRAFT_FIELDS:
                setattr(order, name, getattr(draft, name))

            recalculated = 0
            if repricing and order.participants:
                recalculated = recalculate_all(order, self.policy.charge_decimal_places)

        if recalculated:
            logger.info("Order %s edited; re-priced delivery for %d participants", order_id, recalculated)
        else:
            logger.info("Order %s edited", order_id)
        return EditResult(order=order, recalculated_participants=recalculated)

    def _transition(self, order_id: str, transition, timeout: Optional[float]) -> GroupOrder:
        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            old_status = order.status
            transition(order)
        self.events.status_changed(order, old_status, order.status)
        return order

    def accept(self, order_id: str, *, timeout: Optional[float] = None) -> GroupOrder:
        return self._transition(order_id, accept_order, timeout)

    def process_early(self, order_id: str, *, timeout: Optional[float] = None) -> GroupOrder:
        """Accept below the minimum quantity."""
        return self.accept(order_id, timeout=timeout)

    def complete(self, order_id: str, *, timeout: Optional[float] = None) -> GroupOrder:
        return self._transition(order_id, complete_order, timeout)

    def cancel(self, order_id: str, *, timeout: Optional[float] = None) -> GroupOrder:
        with self.store.transaction(order_id, timeout=self._timeout(timeout)) as order:
            old_status = order.status
            dropped = list(order.participants)
            cancel_order(order)

        for participant in dropped:
            self.events.participant_changed(order, participant, LEFT)
        self.events.status_changed(order, old_status, order.status)
        return order

    def delete(self, order_id: str) -> None:
        # terminal statuses have no way back, so the check cannot go stale
        ensure_deletable(self.store.get_order(order_id))
        self.store.delete_order(order_id)
