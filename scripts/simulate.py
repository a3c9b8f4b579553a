"""
Storefront Simulation Script

Walks a full customer flow against a running API using the client package:
register (or log in), browse the menu, fill a cart, check out, list orders
and book a table.

Run from project root: python scripts/simulate.py --orders 3
"""

import argparse
import os
import random
import sys
import tempfile
import time
import uuid
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from quickserve.client import CartStore, ClientError, LocalStorage, SessionStore
from quickserve.schemas import RESERVATION_TIME_SLOTS

API_BASE_URL = "http://localhost:5000"
PAYMENT_METHODS = ["credit-card", "cash"]


def run_flow(base_url: str, orders: int, storage_path: Path) -> bool:
    """Run the customer flow. Returns False on the first failure."""
    storage = LocalStorage(storage_path)

    with SessionStore(storage, base_url=base_url).load() as session:
        cart = CartStore(storage).load()

        print("=" * 70)
        print(f"Storefront simulation against {base_url}")
        print("=" * 70)

        # 1. Account
        email = f"sim-{uuid.uuid4().hex[:8]}@example.com"
        try:
            user = session.register("Simulated Customer", email, "secret123")
            print(f"\n1. Registered {user['email']} (id {user['id']})")
            session.update_profile(user["name"], user["email"], phone="555-010-0199")
            print("   Profile phone number added")
        except ClientError as e:
            print(f"\n1. Registration failed: {e.message}")
            return False

        # 2. Menu
        try:
            menu = session.get_menu()
        except ClientError as e:
            print(f"\n2. Menu unavailable: {e.message}")
            return False
        print(f"\n2. Menu has {len(menu)} items")
        if not menu:
            print("   Nothing to order; is SEED_MENU disabled?")
            return False

        # 3. Orders
        print(f"\n3. Placing {orders} order(s)")
        for n in range(1, orders + 1):
            for item in random.sample(menu, k=min(len(menu), random.randint(1, 3))):
                cart.add(item, random.randint(1, 3))
            start = time.time()
            try:
                order = session.checkout(cart, random.choice(PAYMENT_METHODS))
            except ClientError as e:
                print(f"   Order {n} failed: {e.message}")
                return False
            elapsed = round(time.time() - start, 3)
            print(f"   {order['orderNumber']}  total {order['total']:.2f}  {order['status']}  ({elapsed}s)")

        history = session.get_orders()
        print(f"   Order history: {len(history)} order(s), newest {history[0]['orderNumber']}")

        # 4. Reservation
        booking_day = date.today() + timedelta(days=random.randint(1, 14))
        try:
            reservation = session.make_reservation(
                booking_day, random.choice(RESERVATION_TIME_SLOTS), random.randint(1, 8)
            )
        except ClientError as e:
            print(f"\n4. Reservation failed: {e.message}")
            return False
        print(f"\n4. Table booked: {reservation['date']} {reservation['time']} for {reservation['guests']}")

        session.logout()

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Storefront Simulation Script")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API root URL")
    parser.add_argument("--orders", type=int, default=3, help="Number of orders to place")
    parser.add_argument("--storage", type=Path, default=None, help="Storage file (default: temporary)")
    args = parser.parse_args()

    storage_path = args.storage or Path(tempfile.mkdtemp()) / "storage.json"
    ok = run_flow(args.base_url, args.orders, storage_path)
    sys.exit(0 if ok else 1)
