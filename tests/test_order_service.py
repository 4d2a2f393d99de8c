import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from order_service.entities import Customer, Order, OrderItem, OrderSequence, OrderStatus
from order_service.errors import ConflictError, NotFoundError, ValidationError
from order_service.repositories import SqlAlchemyCustomerRepository, SqlAlchemyOrderRepository
from order_service.service import OrderService
from tests.helpers import make_item

ORDER_NUMBER = re.compile(r"^ORD-(\d{4})-(\d{5})$")


def _count(session, column):
    return session.scalar(select(func.count(column)))


class TestCreateOrder:

    def test_total_is_exact_sum_of_line_totals(self, order_service, customer_id):
        items = [
            make_item(quantity=2, unit_price="25.99"),
            make_item(sku="SKU-002", quantity=3, unit_price="0.10"),
            make_item(sku="SKU-003", quantity=7, unit_price="19.99"),
        ]

        order = order_service.create_order(customer_id, items)

        assert order.totalAmount == Decimal("51.98") + Decimal("0.30") + Decimal("139.93")
        assert [i.totalPrice for i in order.items] == [Decimal("51.98"), Decimal("0.30"), Decimal("139.93")]

    def test_single_item_example(self, order_service, customer_id):
        order = order_service.create_order(customer_id, [make_item(quantity=2, unit_price="25.99")])

        assert order.totalAmount == Decimal("51.98")
        assert order.customerId == customer_id
        assert order.customerName == "Test Customer"
        assert order.status == OrderStatus.Pending
        assert len(order.items) == 1
        match = ORDER_NUMBER.match(order.orderNumber)
        assert match is not None
        assert int(match.group(1)) == datetime.now(timezone.utc).year

    def test_persists_order_with_items(self, order_service, customer_id, session):
        created = order_service.create_order(customer_id, [make_item(), make_item(sku="SKU-002")])

        stored = session.get(Order, created.id)
        assert stored.order_number == created.orderNumber
        assert len(stored.items) == 2
        assert stored.total_amount == Decimal("20.00")

    def test_unknown_customer_persists_nothing(self, order_service, customer_id, session):
        with pytest.raises(NotFoundError) as exc_info:
            order_service.create_order(999, [make_item()])

        assert exc_info.value.entity == "customer"
        assert _count(session, Order.id) == 0
        assert _count(session, OrderItem.id) == 0

    def test_empty_items_persists_nothing(self, order_service, customer_id, session):
        with pytest.raises(ValidationError):
            order_service.create_order(customer_id, [])

        assert _count(session, Order.id) == 0
        assert _count(session, OrderSequence.year) == 0

    def test_order_numbers_are_sequential(self, order_service, customer_id):
        numbers = [order_service.create_order(customer_id, [make_item()]).orderNumber for _ in range(3)]

        sequence = [int(ORDER_NUMBER.match(n).group(2)) for n in numbers]
        assert sequence == [1, 2, 3]

    def test_store_conflict_is_reported_and_rolled_back(self, session, customer_id):
        orders = SqlAlchemyOrderRepository(session)
        customers = SqlAlchemyCustomerRepository(session)
        first = OrderService(orders, customers).create_order(customer_id, [make_item()])

        class ReusedNumberRepository(SqlAlchemyOrderRepository):
            def next_order_number(self, year):
                return first.orderNumber

        service = OrderService(ReusedNumberRepository(session), customers)
        with pytest.raises(ConflictError):
            service.create_order(customer_id, [make_item()])

        assert _count(session, Order.id) == 1
        assert _count(session, OrderItem.id) == 1

    def test_customer_removed_before_persist_is_a_conflict(self, session, customer_id):
        class VanishedCustomerRepository(SqlAlchemyCustomerRepository):
            def get_by_id(self, customer_id):
                # Resolves, but the row is gone by the time the order is written.
                return Customer(id=customer_id, name="Gone", email="gone@example.com")

        service = OrderService(SqlAlchemyOrderRepository(session), VanishedCustomerRepository(session))

        with pytest.raises(ConflictError):
            service.create_order(999, [make_item()])

        assert _count(session, Order.id) == 0
        assert _count(session, OrderItem.id) == 0
        assert _count(session, OrderSequence.year) == 0


class TestGetOrder:

    def test_returns_items_and_customer_name(self, order_service, customer_id):
        created = order_service.create_order(customer_id, [make_item(quantity=4, unit_price="2.50")])

        order = order_service.get_order(created.id)

        assert order.orderNumber == created.orderNumber
        assert order.customerName == "Test Customer"
        assert order.items[0].totalPrice == Decimal("10.00")

    def test_missing_order_returns_none(self, order_service):
        assert order_service.get_order(12345) is None


class TestUpdateStatus:

    def test_any_status_may_follow_any_other(self, order_service, customer_id, session):
        created = order_service.create_order(customer_id, [make_item()])

        order_service.update_status(created.id, OrderStatus.Delivered)
        order_service.update_status(created.id, OrderStatus.Pending)

        stored = session.get(Order, created.id)
        assert stored.status == OrderStatus.Pending
        assert stored.updated_at is not None

    def test_missing_order_mutates_nothing(self, order_service, customer_id, session):
        created = order_service.create_order(customer_id, [make_item()])

        with pytest.raises(NotFoundError):
            order_service.update_status(created.id + 1, OrderStatus.Shipped)

        stored = session.get(Order, created.id)
        assert stored.status == OrderStatus.Pending
        assert stored.updated_at is None


class TestDeleteOrder:

    def test_removes_order_and_items(self, order_service, customer_id, session):
        created = order_service.create_order(customer_id, [make_item(), make_item(sku="SKU-002")])

        order_service.delete_order(created.id)

        assert session.get(Order, created.id) is None
        assert _count(session, OrderItem.id) == 0

    def test_missing_order_raises(self, order_service):
        with pytest.raises(NotFoundError):
            order_service.delete_order(1)
