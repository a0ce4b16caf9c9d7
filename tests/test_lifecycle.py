from datetime import timedelta
from decimal import Decimal

import pytest

from lifecycle.controller import OrderLifecycleController
from orders.errors import NotFoundError, OrderStateError, ValidationError
from orders.models import Coordinate, Location, OrderStatus, utcnow
from orders.participation.sweeps import expire_stale_orders

from conftest import VENDOR_COORD, assert_total_consistent


def test_create_validates_before_writing(controller, store, make_draft):
    with pytest.raises(ValidationError) as excinfo:
        controller.create(make_draft(bulk_price=Decimal("30")), "supplier_1", "Sharma Wholesale")
    assert excinfo.value.rule == "bulk_price_below_original"
    assert store.list_orders() == []


def test_create_rejects_past_deadline(controller, store, make_draft):
    yesterday = utcnow().date() - timedelta(days=1)
    with pytest.raises(ValidationError) as excinfo:
        controller.create(make_draft(deadline=yesterday), "supplier_1", "Sharma Wholesale")
    assert excinfo.value.rule == "deadline_in_past"
    assert store.list_orders() == []

    today = controller.create(make_draft(deadline=utcnow().date()), "supplier_1", "Sharma Wholesale")
    assert today.status == OrderStatus.OPEN


def test_create_normalises_money_to_decimal(controller, make_draft):
    order = controller.create(
        make_draft(bulk_price="22.5", original_price=28, delivery_charge_per_km="7.5", item="  Onions "),
        "supplier_1",
        "Sharma Wholesale",
    )
    assert order.bulk_price == Decimal("22.5")
    assert order.original_price == Decimal("28")
    assert order.delivery_charge_per_km == Decimal("7.5")
    assert order.item == "Onions"


def test_accept_requires_a_participant(controller, order):
    with pytest.raises(OrderStateError) as excinfo:
        controller.accept(order.id)
    assert excinfo.value.rule == "participants_required"


def test_process_early_accepts_below_minimum(controller, engine, store, order, recorded):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 20)
    accepted = controller.process_early(order.id)
    assert accepted.status == OrderStatus.ACCEPTED
    assert accepted.total_quantity == 20
    assert ("status", order.id, OrderStatus.OPEN, OrderStatus.ACCEPTED) in recorded


def test_early_accept_then_vendor_edit_reopens(controller, engine, store, order):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 20)
    controller.process_early(order.id)

    engine.update_quantity(order.id, "vendor_a", 150)

    # still above minimum, but the supplier must confirm again
    assert store.get_order(order.id).status == OrderStatus.OPEN


def test_complete_only_from_accepted(controller, engine, store, order):
    with pytest.raises(OrderStateError):
        controller.complete(order.id)

    engine.join(order.id, "vendor_a", "Vada Pav Corner", 120)
    completed = controller.complete(order.id)

    assert completed.status == OrderStatus.COMPLETED
    assert [p.vendor_id for p in completed.participants] == ["vendor_a"]


def test_cancel_drops_participants(controller, engine, store, order, recorded):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 60)
    engine.join(order.id, "vendor_b", "Chaat Junction", 45)

    cancelled = controller.cancel(order.id)

    assert cancelled.status == OrderStatus.CANCELLED
    current = assert_total_consistent(store, order.id)
    assert current.participants == []
    assert current.total_quantity == 0
    assert ("participant", "vendor_a", "left") in recorded
    assert ("status", order.id, OrderStatus.ACCEPTED, OrderStatus.CANCELLED) in recorded


@pytest.mark.parametrize("terminal", ["complete", "cancel"])
def test_terminal_orders_reject_further_transitions(controller, engine, order, terminal):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 120)
    getattr(controller, terminal)(order.id)

    with pytest.raises(OrderStateError):
        controller.accept(order.id)
    with pytest.raises(OrderStateError):
        controller.cancel(order.id)
    with pytest.raises(OrderStateError):
        engine.join(order.id, "vendor_b", "Chaat Junction", 1)


def test_delete_only_terminal_orders(controller, engine, store, order):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 120)
    with pytest.raises(OrderStateError):
        controller.delete(order.id)

    controller.complete(order.id)
    controller.delete(order.id)

    with pytest.raises(NotFoundError):
        store.get_order(order.id)
    assert store.list_orders_by_vendor("vendor_a") == []


def test_edit_plain_fields(controller, order, make_draft):
    result = controller.edit(order.id, make_draft(description="Fresh stock", max_quantity=600))
    assert result.recalculated_participants == 0
    assert result.order.description == "Fresh stock"
    assert result.order.max_quantity == 600
    assert result.order.supplier_id == "supplier_1"


def test_edit_moving_supplier_reprices_participants(controller, engine, store, order, make_draft):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 10, vendor_location=VENDOR_COORD)
    engine.join(order.id, "vendor_b", "Chaat Junction", 10)
    before = store.get_order(order.id).find_participant("vendor_a").delivery_charge

    moved = Location("Vashi APMC", Coordinate(19.0771, 73.0100))
    result = controller.edit(order.id, make_draft(location=moved))

    assert result.recalculated_participants == 1
    after = store.get_order(order.id).find_participant("vendor_a").delivery_charge
    assert after > before
    assert store.get_order(order.id).find_participant("vendor_b").delivery_charge is None


def test_edit_rate_change_reprices(controller, engine, store, order, make_draft):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 10, vendor_location=VENDOR_COORD)
    before = store.get_order(order.id).find_participant("vendor_a").delivery_charge

    result = controller.edit(order.id, make_draft(delivery_charge_per_km=Decimal("20")))

    assert result.recalculated_participants == 1
    after = store.get_order(order.id).find_participant("vendor_a").delivery_charge
    assert abs(after - before * 2) <= Decimal("0.01")


def test_edit_cannot_shrink_below_committed(controller, engine, order, make_draft):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 80)
    with pytest.raises(ValidationError) as excinfo:
        controller.edit(order.id, make_draft(min_quantity=50, max_quantity=70))
    assert excinfo.value.rule == "max_below_committed"


def test_edit_only_while_open(controller, engine, order, make_draft):
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 120)
    with pytest.raises(OrderStateError):
        controller.edit(order.id, make_draft(description="too late"))


def test_edit_runs_create_validation(controller, order, make_draft):
    with pytest.raises(ValidationError) as excinfo:
        controller.edit(order.id, make_draft(deadline=None))
    assert excinfo.value.rule == "deadline_required"


def test_expired_orders_can_still_lose_participants(controller, engine, store, make_draft, policy):
    order = controller.create(make_draft(), "supplier_1", "Sharma Wholesale")
    engine.join(order.id, "vendor_a", "Vada Pav Corner", 10)
    expire_stale_orders(store, now=utcnow() + timedelta(days=30), policy=policy)

    engine.remove(order.id, "vendor_a")
    current = store.get_order(order.id)
    assert current.status == OrderStatus.EXPIRED
    assert current.total_quantity == 0


def test_controller_builds_its_own_engine(store, make_draft):
    controller = OrderLifecycleController(store)
    order = controller.create(make_draft(), "supplier_1", "Sharma Wholesale")
    controller.engine.join(order.id, "vendor_a", "Vada Pav Corner", 5)
    assert store.get_order(order.id).total_quantity == 5
