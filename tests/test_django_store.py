import pytest
from django.db import DatabaseError, IntegrityError, OperationalError

from groupbuying.models import GroupOrderRecord, ParticipantRecord
from groupbuying.store import DjangoOrderStore, database_errors
from orders.errors import (
    CapacityExceededError,
    ConflictError,
    DuplicateParticipationError,
    NotFoundError,
    StoreTimeoutError,
    TransportError,
)
from orders.models import OrderStatus, Participant
from orders.participation.engine import ParticipationEngine
from orders.participation.sweeps import reset_stranded_acceptances

from conftest import SUPPLIER_COORD, VENDOR_COORD

pytestmark = pytest.mark.django_db


@pytest.fixture
def db_store():
    return DjangoOrderStore()


@pytest.fixture
def db_engine(db_store, policy):
    return ParticipationEngine(db_store, policy=policy)


@pytest.fixture
def db_order(db_store, make_draft):
    return db_store.create_order(make_draft(), "supplier_1", "Sharma Wholesale")


def test_order_round_trips_through_tables(db_store, db_order):
    fetched = db_store.get_order(db_order.id)

    assert fetched.item == "Onions"
    assert fetched.location.coordinate == SUPPLIER_COORD
    assert fetched.location.address == "Crawford Market, Mumbai"
    assert fetched.status == OrderStatus.OPEN
    assert fetched.bulk_price == db_order.bulk_price
    assert GroupOrderRecord.objects.get(id=db_order.id)._meta.db_table == "groupOrders"


def test_join_edit_and_remove(db_store, db_engine, db_order):
    db_engine.join(db_order.id, "vendor_a", "Vada Pav Corner", 60, vendor_location=VENDOR_COORD)
    db_engine.join(db_order.id, "vendor_b", "Chaat Junction", 45)
    assert db_store.get_order(db_order.id).status == OrderStatus.ACCEPTED

    db_engine.update_quantity(db_order.id, "vendor_a", 200)
    current = db_store.get_order(db_order.id)
    assert current.total_quantity == 245
    assert current.status == OrderStatus.OPEN
    assert GroupOrderRecord.objects.get(id=db_order.id).total_quantity == 245

    db_engine.remove(db_order.id, "vendor_b")
    assert [p.vendor_id for p in db_store.list_participants(db_order.id)] == ["vendor_a"]
    assert db_store.get_order(db_order.id).find_participant("vendor_a").delivery_charge is not None


def test_capacity_and_duplicates(db_store, db_engine, db_order):
    db_engine.join(db_order.id, "vendor_a", "Vada Pav Corner", 100)
    db_engine.update_quantity(db_order.id, "vendor_a", 480)

    with pytest.raises(CapacityExceededError) as excinfo:
        db_engine.join(db_order.id, "vendor_c", "Dosa Point", 30)
    assert excinfo.value.remaining == 20

    with pytest.raises(DuplicateParticipationError):
        db_store.add_participant(Participant.new(db_order.id, "vendor_a", "Vada Pav Corner", 1))


def test_queries_by_supplier_and_vendor(db_store, db_engine, db_order, make_draft):
    other = db_store.create_order(make_draft(item="Potatoes"), "supplier_2", "Patil Traders")
    db_engine.join(other.id, "vendor_a", "Vada Pav Corner", 10)

    assert [o.id for o in db_store.list_orders()] == [other.id, db_order.id]
    assert [o.id for o in db_store.list_orders_by_supplier("supplier_1")] == [db_order.id]
    assert [o.id for o in db_store.list_orders_by_vendor("vendor_a")] == [other.id]


def test_delete_cascades(db_store, db_engine, db_order):
    db_engine.join(db_order.id, "vendor_a", "Vada Pav Corner", 10)
    db_store.delete_order(db_order.id)

    assert not ParticipantRecord.objects.filter(order_id=db_order.id).exists()
    with pytest.raises(NotFoundError):
        db_store.get_order(db_order.id)


def test_plain_write_inside_transaction_conflicts(db_store, db_order):
    with pytest.raises(ConflictError):
        with db_store.transaction(db_order.id) as draft:
            db_store.update_order(db_order.id, description="edited elsewhere")
            draft.item = "Potatoes"

    assert db_store.get_order(db_order.id).item == "Onions"


def test_transaction_rolls_back_on_error(db_store, db_order):
    with pytest.raises(RuntimeError):
        with db_store.transaction(db_order.id) as draft:
            draft.participants.append(Participant.new(db_order.id, "vendor_a", "Vada Pav Corner", 30))
            raise RuntimeError("caller gave up")

    assert db_store.list_participants(db_order.id) == []


def test_stranded_sweep_on_database(db_store, db_order, policy):
    db_store.update_order(db_order.id, status=OrderStatus.ACCEPTED)
    assert reset_stranded_acceptances(db_store, policy=policy) == [db_order.id]
    assert reset_stranded_acceptances(db_store, policy=policy) == []
    assert db_store.get_order(db_order.id).status == OrderStatus.OPEN


def test_subscribers_see_committed_snapshots(db_store, db_engine, db_order, django_capture_on_commit_callbacks):
    snapshots = []
    db_store.subscribe_orders(snapshots.append)
    assert snapshots[0][0].id == db_order.id

    with django_capture_on_commit_callbacks(execute=True):
        db_engine.join(db_order.id, "vendor_a", "Vada Pav Corner", 30)

    assert snapshots[-1][0].total_quantity == 30


@pytest.mark.parametrize(
    "raised, expected",
    [
        (OperationalError("database is locked"), StoreTimeoutError),
        (IntegrityError("UNIQUE constraint failed"), ConflictError),
        (DatabaseError("connection lost"), TransportError),
    ],
)
def test_database_errors_are_mapped(raised, expected):
    with pytest.raises(expected):
        with database_errors("test"):
            raise raised
