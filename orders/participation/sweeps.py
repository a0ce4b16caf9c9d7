"""
Purpose: Housekeeping sweeps, run on a timer by an external scheduler.
What it does:

- reset_stranded_acceptances: accepted orders with no participants go back
  to open with a zero total
- expire_stale_orders: open/accepted orders past their deadline that never
  reached min_quantity become expired (orders that met the minimum are left
  for the supplier to act on)
- HousekeepingCycle: runs both in one call (the "heartbeat")

Both sweeps are idempotent. Candidates are picked from a listing, but the
decision is re-made inside a per-order transaction from the live participant
records, so a sweep racing a join never resets an order that just gained a
participant.

Unlike user-initiated operations, sweeps retry transport and conflict errors
a bounded number of times per order.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from ..errors import RETRYABLE_ERRORS, NotFoundError
from ..events import OrderEvents
from ..models import ACTIVE_STATUSES, OrderStatus, utcnow
from ..store import OrderStore
from .policy import ParticipationPolicy, default_policy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_retries(operation: Callable[[], T], policy: ParticipationPolicy, label: str) -> T:
    """
    Run `operation`, retrying TransportError / ConflictError up to
    policy.sweep_max_attempts times. The last error propagates.
    """
    attempt = 1
    while True:
        try:
            return operation()
        except RETRYABLE_ERRORS as exc:
            if attempt >= policy.sweep_max_attempts:
                logger.error("%s failed after %d attempts: %s", label, attempt, exc)
                raise
            logger.warning("%s attempt %d failed, retrying: %s", label, attempt, exc)
            time.sleep(policy.sweep_retry_backoff_seconds * attempt)
            attempt += 1


def _sweep(
    store: OrderStore,
    events: OrderEvents,
    policy: ParticipationPolicy,
    label: str,
    candidate_statuses: tuple,
    new_status: OrderStatus,
    should_change: Callable,
) -> List[str]:
    changed: List[str] = []
    candidates = with_retries(store.list_orders, policy, f"{label}: list orders")

    for candidate in candidates:
        if candidate.status not in candidate_statuses:
            continue

        def apply(order_id: str = candidate.id):
            with store.transaction(order_id, timeout=policy.store_timeout_seconds) as order:
                old_status = order.status
                order.recompute_total()
                if order.status not in candidate_statuses or not should_change(order):
                    return None
                order.status = new_status
            return order, old_status

        try:
            result = with_retries(apply, policy, f"{label}: order {candidate.id}")
        except NotFoundError:
            # deleted between listing and locking
            continue
        if result is None:
            continue

        order, old_status = result
        changed.append(order.id)
        events.status_changed(order, old_status, order.status)

    logger.info("%s: %d orders updated", label, len(changed))
    return changed


def reset_stranded_acceptances(
    store: OrderStore,
    events: Optional[OrderEvents] = None,
    policy: Optional[ParticipationPolicy] = None,
) -> List[str]:
    """
    Accepted orders with zero participants -> open, total 0. Returns the ids reset.
    """
    return _sweep(
        store,
        events or OrderEvents(),
        policy or default_policy(),
        "reset stranded acceptances",
        (OrderStatus.ACCEPTED,),
        OrderStatus.OPEN,
        lambda order: not order.participants,
    )


def expire_stale_orders(
    store: OrderStore,
    now: Optional[datetime] = None,
    events: Optional[OrderEvents] = None,
    policy: Optional[ParticipationPolicy] = None,
) -> List[str]:
    """
    Open/accepted orders past deadline with total < min -> expired.
    Returns the ids expired.
    """
    now = now or utcnow()
    return _sweep(
        store,
        events or OrderEvents(),
        policy or default_policy(),
        "expire stale orders",
        ACTIVE_STATUSES,
        OrderStatus.EXPIRED,
        lambda order: order.is_past_deadline(now) and order.total_quantity < order.min_quantity,
    )


@dataclass
class CycleReport:
    reset_order_ids: List[str]
    expired_order_ids: List[str]
    ran_at: datetime = field(default_factory=utcnow)


class HousekeepingCycle:
    """
    The time-based "heartbeat": an external scheduler (cron, Celery beat)
    calls run_cycle() periodically.
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

    def run_cycle(self, now: Optional[datetime] = None) -> CycleReport:
        now = now or utcnow()
        reset = reset_stranded_acceptances(self.store, self.events, self.policy)
        expired = expire_stale_orders(self.store, now, self.events, self.policy)
        return CycleReport(reset_order_ids=reset, expired_order_ids=expired, ran_at=now)
