from datetime import timedelta
from decimal import Decimal

import pytest

from lifecycle.controller import OrderLifecycleController
from orders.events import OrderEvents
from orders.models import Coordinate, Location, OrderDraft, utcnow
from orders.participation.engine import ParticipationEngine
from orders.participation.policy import ParticipationPolicy
from orders.store import InMemoryOrderStore

# Crawford Market, Mumbai
SUPPLIER_COORD = Coordinate(18.9477, 72.8342)
# ~1.1 km north of the market
VENDOR_COORD = Coordinate(18.9577, 72.8342)


@pytest.fixture
def make_draft():
    def _make(**overrides) -> OrderDraft:
        values = dict(
            item="Onions",
            description="Nashik red onions, 50kg sacks",
            bulk_price=Decimal("22.00"),
            original_price=Decimal("28.00"),
            min_quantity=100,
            max_quantity=500,
            deadline=utcnow().date() + timedelta(days=7),
            location=Location("Crawford Market, Mumbai", SUPPLIER_COORD),
            delivery_charge_per_km=Decimal("10"),
            contact_phone="9876543210",
        )
        values.update(overrides)
        return OrderDraft(**values)

    return _make


@pytest.fixture
def policy():
    # no sleeping between sweep retries in tests
    return ParticipationPolicy(store_timeout_seconds=2.0, sweep_retry_backoff_seconds=0.0)


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.fixture
def events():
    return OrderEvents()


@pytest.fixture
def recorded(events):
    """Every event fired, in order."""
    log = []
    events.on_status_changed(lambda order, old, new: log.append(("status", order.id, old, new)))
    events.on_participant_changed(lambda order, p, action: log.append(("participant", p.vendor_id, action)))
    return log


@pytest.fixture
def engine(store, events, policy):
    return ParticipationEngine(store, events, policy)


@pytest.fixture
def controller(store, engine):
    return OrderLifecycleController(store, engine)


@pytest.fixture
def order(controller, make_draft):
    """An open order: min 100, max 500, 10/km delivery."""
    return controller.create(make_draft(), "supplier_1", "Sharma Wholesale")


def assert_total_consistent(store, order_id):
    order = store.get_order(order_id)
    assert order.total_quantity == sum(p.quantity for p in store.list_participants(order_id))
    vendor_ids = [p.vendor_id for p in order.participants]
    assert len(vendor_ids) == len(set(vendor_ids))
    return order
