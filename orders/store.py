"""
Purpose: Persistence abstraction for group orders and their participants.
What it does:
- OrderStore: the operations the core needs from a document store
  (two collections: group orders, participants keyed by order_id).
- InMemoryOrderStore: thread-safe reference implementation used by tests,
  scripts and the simulation. The Django-backed store lives in
  backend/groupbuying/store.py.

Every read returns an assembled aggregate: the order with its participants
populated and total_quantity re-derived from them.

transaction(order_id) is the only way the engine mutates an aggregate:
  - yields a private copy of the order (participants included)
  - the caller mutates the copy
  - on clean exit the whole aggregate is written at once, total re-derived,
    version bumped
  - on exception nothing is written
  - an aggregate left unchanged is not written at all

Rule: The store does not apply business rules (status, capacity). It
serializes, persists and publishes.
"""

from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields
from typing import Callable, Dict, Iterator, List, Optional

from .errors import (
    ConflictError,
    DuplicateParticipationError,
    NotFoundError,
    StoreTimeoutError,
    ValidationError,
)
from .models import GroupOrder, OrderDraft, Participant

logger = logging.getLogger(__name__)

OrdersCallback = Callable[[List[GroupOrder]], None]
Unsubscribe = Callable[[], None]

ORDER_FIELDS = {f.name for f in dataclass_fields(GroupOrder)}
PARTICIPANT_FIELDS = {f.name for f in dataclass_fields(Participant)}

# Fields fixed at creation, or derived by the store itself.
IMMUTABLE_ORDER_FIELDS = {"id", "supplier_id", "supplier_name", "created_at", "participants", "total_quantity", "version"}
IMMUTABLE_PARTICIPANT_FIELDS = {"id", "order_id", "vendor_id", "joined_at"}


def check_patch(patch: Dict[str, object], allowed: set, immutable: set, kind: str) -> None:
    for name in patch:
        if name in immutable:
            raise ValidationError("immutable_field", f"{kind}.{name} cannot be changed")
        if name not in allowed:
            raise ValidationError("unknown_field", f"{kind} has no field {name!r}")


class OrderStore(ABC):
    """
    The document-store contract required by the participation engine and the
    lifecycle controller. Transport failures propagate to the caller unchanged.
    """

    # --- Orders ---

    @abstractmethod
    def create_order(self, draft: OrderDraft, supplier_id: str, supplier_name: str) -> GroupOrder:
        ...

    @abstractmethod
    def get_order(self, order_id: str) -> GroupOrder:
        """Raises NotFoundError for unknown ids."""

    @abstractmethod
    def list_orders(self) -> List[GroupOrder]:
        """All orders, newest first."""

    @abstractmethod
    def list_orders_by_supplier(self, supplier_id: str) -> List[GroupOrder]:
        ...

    @abstractmethod
    def list_orders_by_vendor(self, vendor_id: str) -> List[GroupOrder]:
        """Orders holding at least one participant record for vendor_id."""

    @abstractmethod
    def update_order(self, order_id: str, **fields) -> GroupOrder:
        """
        Merge-patch. Derived fields are the caller's responsibility; use
        transaction() when the patch depends on participants.
        """

    @abstractmethod
    def delete_order(self, order_id: str) -> None:
        """Deletes the order and, in cascade, all its participants."""

    @abstractmethod
    def subscribe_orders(self, callback: OrdersCallback) -> Unsubscribe:
        """
        callback receives the full current list of orders after every change
        (and once on subscription). Treat each call as an authoritative
        snapshot, not a diff.
        """

    # --- Participants ---

    @abstractmethod
    def add_participant(self, participant: Participant) -> Participant:
        ...

    @abstractmethod
    def update_participant(self, order_id: str, vendor_id: str, **fields) -> Participant:
        ...

    @abstractmethod
    def remove_participant(self, order_id: str, vendor_id: str) -> Participant:
        ...

    @abstractmethod
    def list_participants(self, order_id: str) -> List[Participant]:
        ...

    # --- Atomic read-modify-write ---

    @abstractmethod
    def transaction(self, order_id: str, *, timeout: Optional[float] = None):
        """
        Context manager yielding a mutable copy of the order aggregate.
        Raises NotFoundError, StoreTimeoutError (lock not acquired in time)
        or ConflictError (a concurrent write landed before commit).
        """


class InMemoryOrderStore(OrderStore):
    """
    In-memory order store.

    Concurrency:
    - one threading.Lock per order serializes transactions on that order
    - one store-wide RLock guards the dicts for short critical sections
    - plain writes (update_order, add_participant, ...) bump the order
      version; a transaction whose base version moved raises ConflictError
    """

    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = default_timeout
        self._orders: Dict[str, GroupOrder] = {}  # rows, participants always empty
        self._participants: Dict[str, Participant] = {}  # by participant id
        self._order_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.RLock()
        self._subscribers: List[OrdersCallback] = []

    # ---- internal helpers (call with self._lock held) ----

    def _row(self, order_id: str) -> GroupOrder:
        row = self._orders.get(order_id)
        if row is None:
            raise NotFoundError("Order", order_id)
        return row

    def _participants_of(self, order_id: str) -> List[Participant]:
        return [p for p in self._participants.values() if p.order_id == order_id]

    def _find_participant(self, order_id: str, vendor_id: str) -> Participant:
        for participant in self._participants_of(order_id):
            if participant.vendor_id == vendor_id:
                return participant
        raise NotFoundError("Participant", f"{vendor_id} in order {order_id}")

    def _assemble(self, row: GroupOrder) -> GroupOrder:
        order = copy.deepcopy(row)
        order.participants = [copy.deepcopy(p) for p in self._participants_of(row.id)]
        order.recompute_total()
        return order

    def _write_aggregate(self, order_id: str, aggregate: GroupOrder, version: int) -> None:
        seen = {}
        for participant in aggregate.participants:
            if participant.vendor_id in seen:
                raise DuplicateParticipationError(order_id, participant.vendor_id, seen[participant.vendor_id])
            seen[participant.vendor_id] = participant.id

        keep_ids = {p.id for p in aggregate.participants}
        for participant in self._participants_of(order_id):
            if participant.id not in keep_ids:
                del self._participants[participant.id]
        for participant in aggregate.participants:
            participant.order_id = order_id
            self._participants[participant.id] = copy.deepcopy(participant)

        aggregate.id = order_id
        aggregate.recompute_total()
        aggregate.version = version
        row = copy.deepcopy(aggregate)
        row.participants = []
        self._orders[order_id] = row

    def _publish(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.list_orders()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Order subscriber %r failed", callback)

    # ---- Orders ----

    def create_order(self, draft: OrderDraft, supplier_id: str, supplier_name: str) -> GroupOrder:
        order = GroupOrder.new(draft, supplier_id, supplier_name)
        with self._lock:
            self._orders[order.id] = copy.deepcopy(order)
            self._order_locks[order.id] = threading.Lock()
            created = self._assemble(self._orders[order.id])
        logger.info("Created order %s (%s) for supplier %s", order.id, order.item, supplier_id)
        self._publish()
        return created

    def get_order(self, order_id: str) -> GroupOrder:
        with self._lock:
            return self._assemble(self._row(order_id))

    def list_orders(self) -> List[GroupOrder]:
        with self._lock:
            # reversed insertion order breaks created_at ties newest first
            orders = [self._assemble(row) for row in reversed(list(self._orders.values()))]
        orders.sort(key=lambda order: order.created_at, reverse=True)
        return orders

    def list_orders_by_supplier(self, supplier_id: str) -> List[GroupOrder]:
        return [order for order in self.list_orders() if order.supplier_id == supplier_id]

    def list_orders_by_vendor(self, vendor_id: str) -> List[GroupOrder]:
        return [
            order for order in self.list_orders()
            if any(p.vendor_id == vendor_id for p in order.participants)
        ]

    def update_order(self, order_id: str, **fields) -> GroupOrder:
        check_patch(fields, ORDER_FIELDS, IMMUTABLE_ORDER_FIELDS, "GroupOrder")
        with self._lock:
            row = self._row(order_id)
            for name, value in fields.items():
                setattr(row, name, value)
            row.version += 1
            updated = self._assemble(row)
        self._publish()
        return updated

    def delete_order(self, order_id: str) -> None:
        with self._lock:
            self._row(order_id)
            for participant in self._participants_of(order_id):
                del self._participants[participant.id]
            del self._orders[order_id]
            self._order_locks.pop(order_id, None)
        logger.info("Deleted order %s", order_id)
        self._publish()

    def subscribe_orders(self, callback: OrdersCallback) -> Unsubscribe:
        with self._lock:
            self._subscribers.append(callback)
        callback(self.list_orders())

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # ---- Participants ----

    def add_participant(self, participant: Participant) -> Participant:
        with self._lock:
            row = self._row(participant.order_id)
            for existing in self._participants_of(row.id):
                if existing.vendor_id == participant.vendor_id:
                    raise DuplicateParticipationError(row.id, participant.vendor_id, existing.id)
            self._participants[participant.id] = copy.deepcopy(participant)
            row.version += 1
        self._publish()
        return copy.deepcopy(participant)

    def update_participant(self, order_id: str, vendor_id: str, **fields) -> Participant:
        check_patch(fields, PARTICIPANT_FIELDS, IMMUTABLE_PARTICIPANT_FIELDS, "Participant")
        with self._lock:
            row = self._row(order_id)
            participant = self._find_participant(order_id, vendor_id)
            for name, value in fields.items():
                setattr(participant, name, value)
            row.version += 1
            updated = copy.deepcopy(participant)
        self._publish()
        return updated

    def remove_participant(self, order_id: str, vendor_id: str) -> Participant:
        with self._lock:
            row = self._row(order_id)
            participant = self._find_participant(order_id, vendor_id)
            del self._participants[participant.id]
            row.version += 1
        self._publish()
        return participant

    def list_participants(self, order_id: str) -> List[Participant]:
        with self._lock:
            self._row(order_id)
            return [copy.deepcopy(p) for p in self._participants_of(order_id)]

    # ---- Atomic read-modify-write ----

    @contextmanager
    def transaction(self, order_id: str, *, timeout: Optional[float] = None) -> Iterator[GroupOrder]:
        with self._lock:
            order_lock = self._order_locks.get(order_id)
        if order_lock is None:
            raise NotFoundError("Order", order_id)

        timeout = self.default_timeout if timeout is None else timeout
        acquired = order_lock.acquire() if timeout is None else order_lock.acquire(timeout=timeout)
        if not acquired:
            raise StoreTimeoutError(f"Timed out after {timeout}s waiting for order {order_id}")

        try:
            with self._lock:
                row = self._row(order_id)  # may have been deleted while we waited
                base_version = row.version
                aggregate = self._assemble(row)
                original = copy.deepcopy(aggregate)

            yield aggregate

            if aggregate == original:
                return

            with self._lock:
                row = self._orders.get(order_id)
                if row is None or row.version != base_version:
                    raise ConflictError(f"Order {order_id} changed during the transaction")
                self._write_aggregate(order_id, aggregate, base_version + 1)
        finally:
            order_lock.release()

        self._publish()
