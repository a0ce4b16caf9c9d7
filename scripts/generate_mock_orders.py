import os
import uuid
from datetime import datetime, timedelta, timezone

import numpy as np
import pandas as pd

ITEMS = [
    ("Onions", "kg", 28.0),
    ("Potatoes", "kg", 24.0),
    ("Tomatoes", "kg", 32.0),
    ("Cooking Oil", "litre", 140.0),
    ("Besan", "kg", 90.0),
    ("Paneer", "kg", 320.0),
    ("Pav Buns", "dozen", 48.0),
    ("Green Chillies", "kg", 60.0),
]


def random_phone() -> str:
    return str(np.random.randint(6, 10)) + "".join(str(d) for d in np.random.randint(0, 10, size=9))


def generate_mock_orders(num_orders=40, num_suppliers=8, num_vendors=60, output_prefix="sampledata/"):
    """
    Generates group orders (supplier deals) and a vendor roster around a city
    centre, so the simulation gets realistic delivery distances (1-15 km).

    Supplier locations are written in the legacy "text [lat,lng]" format to
    exercise the import-boundary parser.
    """
    # Center around Mumbai
    CENTER_LAT = 19.0760
    CENTER_LNG = 72.8777

    # 1. Suppliers (wholesale markets) within ~10km
    suppliers = []
    for supplier_index in range(num_suppliers):
        suppliers.append({
            "id": f"s_{str(uuid.uuid4())[:8]}",
            "name": f"Wholesaler {supplier_index + 1}",
            "lat": CENTER_LAT + np.random.uniform(-0.09, 0.09),
            "lng": CENTER_LNG + np.random.uniform(-0.09, 0.09),
        })

    today = datetime.now(timezone.utc).date()

    # 2. Group orders
    orders = []
    for order_index in range(num_orders):
        supplier = suppliers[np.random.randint(0, num_suppliers)]
        item, unit, market_price = ITEMS[np.random.randint(0, len(ITEMS))]
        discount = np.random.uniform(0.08, 0.3)
        min_quantity = int(np.random.choice([10, 20, 25, 50]))
        orders.append({
            "order_ref": f"g_{str(order_index + 1).zfill(4)}",
            "supplier_id": supplier["id"],
            "supplier_name": supplier["name"],
            "item": item,
            "unit": unit,
            "description": f"Bulk {item.lower()} from {supplier['name']}",
            "original_price": np.round(market_price, 2),
            "bulk_price": np.round(market_price * (1 - discount), 2),
            "min_quantity": min_quantity,
            "max_quantity": min_quantity * int(np.random.choice([2, 3, 4])),
            # deadline-today orders below minimum give housekeeping work
            "deadline": (today + timedelta(days=int(np.random.randint(0, 8)))).isoformat(),
            "location": f"{supplier['name']} Market [{supplier['lat']:.6f},{supplier['lng']:.6f}]",
            "delivery_charge_per_km": float(np.random.choice([0, 5, 8, 10])),
            "contact_phone": random_phone(),
        })

    # 3. Vendors (street-food stalls)
    vendors = []
    for vendor_index in range(num_vendors):
        vendors.append({
            "vendor_id": f"v_{str(uuid.uuid4())[:8]}",
            "vendor_name": f"Stall {vendor_index + 1}",
            "lat": np.round(CENTER_LAT + np.random.uniform(-0.12, 0.12), 6),
            "lng": np.round(CENTER_LNG + np.random.uniform(-0.12, 0.12), 6),
            "phone": random_phone(),
        })

    orders_df = pd.DataFrame(orders)
    vendors_df = pd.DataFrame(vendors)
    os.makedirs(output_prefix, exist_ok=True)
    orders_file = f"{output_prefix}group_orders.csv"
    vendors_file = f"{output_prefix}vendors.csv"
    orders_df.to_csv(orders_file, index=False)
    vendors_df.to_csv(vendors_file, index=False)
    print(f"✅ Generated {num_orders} group orders -> '{orders_file}'")
    print(f"✅ Generated {num_vendors} vendors -> '{vendors_file}'")

    print("\nOrders per item:")
    for name, count in orders_df["item"].value_counts().items():
        print(f"  {name}: {count}")


if __name__ == "__main__":
    generate_mock_orders()
