"""
Purpose: OrderStore on the Django ORM (tables groupOrders / participants).
What it does:

- transaction(): transaction.atomic() + select_for_update() on the order row,
  then a version-checked UPDATE on commit (ConflictError if it moved)
- subscribe_orders(): post_save / post_delete on both tables schedule a
  full snapshot through transaction.on_commit, so subscribers only ever see
  committed state
- database errors are mapped onto the domain's transport taxonomy:
  OperationalError -> StoreTimeoutError, IntegrityError -> ConflictError,
  any other DatabaseError -> TransportError

Rule: No business rules here; see orders.participation and lifecycle.
"""

import copy
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from django.db import DatabaseError, IntegrityError, OperationalError, connection
from django.db import transaction as db_transaction
from django.db.models.signals import post_delete, post_save

from orders.errors import ConflictError, DuplicateParticipationError, NotFoundError, StoreTimeoutError, TransportError
from orders.models import GroupOrder, OrderDraft, Participant
from orders.store import (
    IMMUTABLE_ORDER_FIELDS,
    IMMUTABLE_PARTICIPANT_FIELDS,
    ORDER_FIELDS,
    PARTICIPANT_FIELDS,
    OrdersCallback,
    OrderStore,
    Unsubscribe,
    check_patch,
)

from .models import GroupOrderRecord, ParticipantRecord

logger = logging.getLogger(__name__)


@contextmanager
def database_errors(action: str):
    try:
        yield
    except OperationalError as exc:
        raise StoreTimeoutError(f"{action}: {exc}", cause=exc) from exc
    except IntegrityError as exc:
        raise ConflictError(f"{action}: {exc}") from exc
    except DatabaseError as exc:
        raise TransportError(f"{action}: {exc}", cause=exc) from exc


class DjangoOrderStore(OrderStore):
    def __init__(self):
        self._subscribers: List[OrdersCallback] = []
        uid = f"groupbuying-store-{id(self)}"
        for model in (GroupOrderRecord, ParticipantRecord):
            post_save.connect(self._on_change, sender=model, dispatch_uid=f"{uid}-save-{model.__name__}")
            post_delete.connect(self._on_change, sender=model, dispatch_uid=f"{uid}-delete-{model.__name__}")

    # ---- internal helpers ----

    def _on_change(self, sender, **kwargs) -> None:
        if self._subscribers:
            db_transaction.on_commit(self._publish)

    def _publish(self) -> None:
        snapshot = self.list_orders()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Order subscriber %r failed", callback)

    @staticmethod
    def _record(order_id: str, for_update: bool = False) -> GroupOrderRecord:
        queryset = GroupOrderRecord.objects.select_for_update() if for_update else GroupOrderRecord.objects
        try:
            return queryset.get(id=order_id)
        except GroupOrderRecord.DoesNotExist:
            raise NotFoundError("Order", order_id)

    @staticmethod
    def _participant_record(order_id: str, vendor_id: str) -> ParticipantRecord:
        try:
            return ParticipantRecord.objects.get(order_id=order_id, vendor_id=vendor_id)
        except ParticipantRecord.DoesNotExist:
            raise NotFoundError("Participant", f"{vendor_id} in order {order_id}")

    @staticmethod
    def _bump(record: GroupOrderRecord) -> None:
        record.version += 1
        record.total_quantity = sum(p.quantity for p in record.participants.all())
        record.save(update_fields=["version", "total_quantity"])

    @staticmethod
    def _set_lock_timeout(timeout: Optional[float]) -> None:
        # sqlite waits on its connection-level "timeout" option instead
        if timeout and connection.vendor == "postgresql":
            with connection.cursor() as cursor:
                cursor.execute("SET LOCAL lock_timeout = %s", [f"{int(timeout * 1000)}ms"])

    # ---- Orders ----

    def create_order(self, draft: OrderDraft, supplier_id: str, supplier_name: str) -> GroupOrder:
        order = GroupOrder.new(draft, supplier_id, supplier_name)
        record = GroupOrderRecord(id=order.id)
        record.apply_domain(order)
        with database_errors(f"create order {order.id}"):
            record.save(force_insert=True)
        logger.info("Created order %s (%s) for supplier %s", order.id, order.item, supplier_id)
        return record.to_domain([])

    def get_order(self, order_id: str) -> GroupOrder:
        with database_errors(f"get order {order_id}"):
            record = self._record(order_id)
            return record.to_domain(record.participants.all())

    def _list(self, queryset) -> List[GroupOrder]:
        with database_errors("list orders"):
            records = list(queryset.prefetch_related("participants").order_by("-created_at"))
            return [record.to_domain(record.participants.all()) for record in records]

    def list_orders(self) -> List[GroupOrder]:
        return self._list(GroupOrderRecord.objects.all())

    def list_orders_by_supplier(self, supplier_id: str) -> List[GroupOrder]:
        return self._list(GroupOrderRecord.objects.filter(supplier_id=supplier_id))

    def list_orders_by_vendor(self, vendor_id: str) -> List[GroupOrder]:
        return self._list(GroupOrderRecord.objects.filter(participants__vendor_id=vendor_id).distinct())

    def update_order(self, order_id: str, **fields) -> GroupOrder:
        check_patch(fields, ORDER_FIELDS, IMMUTABLE_ORDER_FIELDS, "GroupOrder")
        with database_errors(f"update order {order_id}"), db_transaction.atomic():
            record = self._record(order_id, for_update=True)
            order = record.to_domain(record.participants.all())
            for name, value in fields.items():
                setattr(order, name, value)
            order.version += 1
            record.apply_domain(order)
            record.save()
            return order

    def delete_order(self, order_id: str) -> None:
        with database_errors(f"delete order {order_id}"), db_transaction.atomic():
            self._record(order_id, for_update=True).delete()
        logger.info("Deleted order %s", order_id)

    def subscribe_orders(self, callback: OrdersCallback) -> Unsubscribe:
        self._subscribers.append(callback)
        callback(self.list_orders())

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---- Participants ----

    def add_participant(self, participant: Participant) -> Participant:
        with database_errors(f"add participant to order {participant.order_id}"), db_transaction.atomic():
            record = self._record(participant.order_id, for_update=True)
            existing = record.participants.filter(vendor_id=participant.vendor_id).first()
            if existing is not None:
                raise DuplicateParticipationError(record.id, participant.vendor_id, existing.id)
            row = ParticipantRecord(order=record, id=participant.id)
            row.apply_domain(participant)
            row.save(force_insert=True)
            self._bump(record)
            return row.to_domain()

    def update_participant(self, order_id: str, vendor_id: str, **fields) -> Participant:
        check_patch(fields, PARTICIPANT_FIELDS, IMMUTABLE_PARTICIPANT_FIELDS, "Participant")
        with database_errors(f"update participant {vendor_id}"), db_transaction.atomic():
            record = self._record(order_id, for_update=True)
            row = self._participant_record(order_id, vendor_id)
            participant = row.to_domain()
            for name, value in fields.items():
                setattr(participant, name, value)
            row.apply_domain(participant)
            row.save()
            self._bump(record)
            return participant

    def remove_participant(self, order_id: str, vendor_id: str) -> Participant:
        with database_errors(f"remove participant {vendor_id}"), db_transaction.atomic():
            record = self._record(order_id, for_update=True)
            row = self._participant_record(order_id, vendor_id)
            participant = row.to_domain()
            row.delete()
            self._bump(record)
            return participant

    def list_participants(self, order_id: str) -> List[Participant]:
        with database_errors(f"list participants of order {order_id}"):
            record = self._record(order_id)
            return [row.to_domain() for row in record.participants.all()]

    # ---- Atomic read-modify-write ----

    def _write_aggregate(self, record: GroupOrderRecord, aggregate: GroupOrder, base_version: int) -> None:
        moved = GroupOrderRecord.objects.filter(id=record.id, version=base_version).update(version=base_version + 1)
        if not moved:
            raise ConflictError(f"Order {record.id} changed during the transaction")

        aggregate.recompute_total()
        aggregate.version = base_version + 1
        record.apply_domain(aggregate)
        record.save()

        keep_ids = [p.id for p in aggregate.participants]
        for row in ParticipantRecord.objects.filter(order_id=record.id).exclude(id__in=keep_ids):
            row.delete()
        for participant in aggregate.participants:
            row = ParticipantRecord(order=record, id=participant.id)
            row.apply_domain(participant)
            row.save()

    @contextmanager
    def transaction(self, order_id: str, *, timeout: Optional[float] = None) -> Iterator[GroupOrder]:
        with database_errors(f"transaction on order {order_id}"), db_transaction.atomic():
            self._set_lock_timeout(timeout)
            record = self._record(order_id, for_update=True)
            base_version = record.version
            aggregate = record.to_domain(record.participants.all())
            original = copy.deepcopy(aggregate)

            yield aggregate

            if aggregate != original:
                self._write_aggregate(record, aggregate, base_version)
