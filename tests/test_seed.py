from decimal import Decimal

from sqlalchemy import func, select

from order_service.database import Database
from order_service.entities import Customer, Order, OrderSequence
from order_service.seed import SEED_ORDERS, SEED_YEAR, seed_database


def test_seed_fills_empty_store_once(session):
    assert seed_database(session) is True
    assert seed_database(session) is False

    assert session.scalar(select(func.count(Customer.id))) == 10
    assert session.scalar(select(func.count(Order.id))) == SEED_ORDERS
    assert session.get(OrderSequence, SEED_YEAR).last_value == SEED_ORDERS


def test_seeded_totals_match_items(session):
    seed_database(session)
    session.expire_all()

    for order in session.scalars(select(Order)):
        assert 1 <= len(order.items) <= 4
        assert order.total_amount == sum((item.total_price for item in order.items), Decimal("0"))


def test_seed_is_reproducible(tmp_path):
    totals = []
    for name in ("a.db", "b.db"):
        database = Database(f"sqlite:///{tmp_path / name}")
        database.create_all()
        with database.session() as session:
            seed_database(session)
            totals.append(session.scalar(select(func.sum(Order.total_amount))))
        database.dispose()

    assert totals[0] == totals[1]
