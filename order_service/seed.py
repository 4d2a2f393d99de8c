"""
seed.py — Reproducible Development Data

Fills an empty store with 10 customers and 100 orders (1–4 items each) so the
listing and report endpoints have something to show. A fixed random seed makes
the data set identical on every run.
"""

import random
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .entities import Customer, Order, OrderItem, OrderSequence, OrderStatus, utcnow
from .logging_config import get_logger
from .repositories import format_order_number

log = get_logger(__name__)

SEED_CUSTOMERS = 10
SEED_ORDERS = 100
SEED_YEAR = 2024
RANDOM_SEED = 42


def seed_database(session: Session) -> bool:
    """
    Inserts the demo data set if the store holds no customers yet.

    Args:
        session (Session): Session used for the inserts; committed on success.

    Returns:
        bool: True if data was inserted, False if the store was not empty.
    """
    if session.scalar(select(func.count(Customer.id))):
        log.info("Store already contains customers, skipping seed.")
        return False

    now = utcnow()
    rng = random.Random(RANDOM_SEED)

    customers = [
        Customer(
            name=f"Customer {i}",
            email=f"customer{i}@example.com",
            created_at=now - timedelta(days=100 - i),
        )
        for i in range(1, SEED_CUSTOMERS + 1)
    ]
    session.add_all(customers)
    session.flush()

    for i in range(1, SEED_ORDERS + 1):
        order = Order(
            order_number=format_order_number(SEED_YEAR, i),
            customer_id=customers[i % SEED_CUSTOMERS].id,
            status=OrderStatus(i % len(OrderStatus)),
            created_at=now - timedelta(days=100 - i),
        )
        for _ in range(rng.randint(1, 4)):
            unit_price = Decimal(str(round(rng.random() * 100 + 10, 2))).quantize(Decimal("0.01"))
            order.items.append(OrderItem(
                product_name=f"Product {rng.randint(1, 49)}",
                product_sku=f"SKU-{rng.randint(1000, 9998)}",
                quantity=rng.randint(1, 4),
                unit_price=unit_price,
            ))
        order.calculate_total()
        session.add(order)

    # Numbers issued above must never be handed out again.
    session.add(OrderSequence(year=SEED_YEAR, last_value=SEED_ORDERS))
    session.commit()

    log.info(f"Seeded {SEED_CUSTOMERS} customers and {SEED_ORDERS} orders.")
    return True
