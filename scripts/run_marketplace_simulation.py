import logging
import os
import random
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from typing import List

import pandas as pd

from lifecycle.controller import OrderLifecycleController
from orders.errors import MarketplaceError
from orders.events import OrderEvents
from orders.location import parse_location_string
from orders.models import Coordinate, GroupOrder, OrderDraft, OrderStatus
from orders.participation.engine import ParticipationEngine
from orders.participation.policy import policy_from_env
from orders.participation.sweeps import HousekeepingCycle
from orders.receipts import build_receipt
from orders.store import InMemoryOrderStore
from routing.route_service import route_polyline

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEXT_COLUMNS = {"contact_phone": str, "phone": str}


def load_orders(controller: OrderLifecycleController, filepath="sampledata/group_orders.csv") -> List[GroupOrder]:
    df = pd.read_csv(os.path.join(BASE_DIR, filepath), dtype=TEXT_COLUMNS)
    orders = []
    for row in df.itertuples(index=False):
        draft = OrderDraft(
            item=row.item,
            description=row.description,
            unit=row.unit,
            bulk_price=Decimal(str(row.bulk_price)),
            original_price=Decimal(str(row.original_price)),
            min_quantity=int(row.min_quantity),
            max_quantity=int(row.max_quantity),
            deadline=date.fromisoformat(row.deadline),
            location=parse_location_string(row.location),
            delivery_charge_per_km=Decimal(str(row.delivery_charge_per_km)),
            contact_phone=row.contact_phone,
        )
        try:
            orders.append(controller.create(draft, row.supplier_id, row.supplier_name))
        except MarketplaceError as exc:
            print(f"[SKIPPED] {row.order_ref}: {exc}")
    return orders


def load_vendors(filepath="sampledata/vendors.csv") -> pd.DataFrame:
    return pd.read_csv(os.path.join(BASE_DIR, filepath), dtype=TEXT_COLUMNS)


def run_simulation(joins_per_vendor=3, workers=8):
    print("=== STARTING GROUP-BUYING MARKETPLACE SIMULATION ===")
    logging.basicConfig(level=logging.WARNING)

    # 1. Configure System
    policy = policy_from_env()
    store = InMemoryOrderStore()
    events = OrderEvents()
    engine = ParticipationEngine(store, events, policy)
    controller = OrderLifecycleController(store, engine, events, policy)

    accepted_log = []

    @events.on_status_changed
    def track_acceptance(order, old, new):
        if new == OrderStatus.ACCEPTED:
            accepted_log.append(order.id)

    # 2. Load Data
    orders = load_orders(controller)
    vendors = load_vendors()
    print(f"Loaded {len(orders)} Group Orders and {len(vendors)} Vendors.\n")

    # 3. Vendors join concurrently; the store serializes joins per order
    attempts = []
    for vendor in vendors.itertuples(index=False):
        for order in random.sample(orders, min(joins_per_vendor, len(orders))):
            attempts.append((order, vendor))

    def attempt_join(args):
        order, vendor = args
        quantity = random.randint(1, max(1, order.min_quantity // 2))
        try:
            engine.join(
                order.id,
                vendor.vendor_id,
                vendor.vendor_name,
                quantity,
                vendor_location=Coordinate(float(vendor.lat), float(vendor.lng)),
                vendor_phone=vendor.phone,
            )
            return "joined"
        except MarketplaceError as exc:
            return type(exc).__name__

    print(f"Running {len(attempts)} join attempts on {workers} threads...")
    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(attempt_join, attempts))
    print(pd.Series(outcomes).value_counts().to_string())
    print(f"Orders reaching minimum: {len(set(accepted_log))}\n")

    # 4. Suppliers complete what got accepted
    for order in store.list_orders():
        if order.status == OrderStatus.ACCEPTED:
            controller.complete(order.id)

    # 5. Housekeeping heartbeat
    report = HousekeepingCycle(store, events, policy).run_cycle()
    print(f"Housekeeping: {len(report.reset_order_ids)} reset, {len(report.expired_order_ids)} expired\n")

    # 6. Receipts
    print("--- Completed Orders ---")
    revenue = Decimal("0")
    for order in store.list_orders():
        if order.status != OrderStatus.COMPLETED:
            continue
        receipt = build_receipt(order)
        revenue += receipt.revenue
        print(
            f"{order.item:<15} {receipt.total_quantity:>4}{order.unit:<6} "
            f"vendors={receipt.participant_count:<3} revenue={receipt.revenue:>10} "
            f"savings={receipt.total_savings:>9} delivery={receipt.total_delivery:>8}"
        )

    # 7. One delivery route (OSRM when configured, straight line otherwise)
    for order in store.list_orders():
        located = [p for p in order.participants if p.vendor_location]
        if order.supplier_coordinate and located:
            path = route_polyline(order.supplier_coordinate.as_tuple(), located[0].vendor_location.as_tuple())
            print(f"\nSample route for {order.item} -> {located[0].vendor_name}: {len(path)} points")
            break

    status_counts = pd.Series([o.status.value for o in store.list_orders()]).value_counts()
    print("\n=== SIMULATION COMPLETE ===")
    print(status_counts.to_string())
    print(f"Total completed revenue: {revenue}")


if __name__ == "__main__":
    run_simulation()
