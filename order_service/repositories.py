"""
repositories.py — Persistence Abstraction for Customers and Orders

The service layer talks to the store only through the abstract repositories
defined here. The SQLAlchemy implementations keep all queries in one place:
lookups, writes, the per-year order-number counter, the paginated listing and
the aggregate report.

Order numbers are reserved from the `order_sequences` table inside the same
transaction that inserts the order. The counter row is incremented with a
single UPDATE, so two concurrent creations can never read the same value; if
the order insert fails, the increment is rolled back with it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import BigInteger, cast, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from .entities import Customer, Order, OrderItem, OrderSequence, OrderStatus
from .errors import ConflictError
from .logging_config import get_logger

log = get_logger(__name__)

ORDER_NUMBER_FORMAT = "ORD-{year}-{value:05d}"
CENT = Decimal("0.01")


def format_order_number(year: int, value: int) -> str:
    return ORDER_NUMBER_FORMAT.format(year=year, value=value)


@dataclass(frozen=True)
class OrderSummaryRow:
    """One listing row: the order, its customer's name and its number of items."""
    order: Order
    customer_name: str
    item_count: int


@dataclass(frozen=True)
class CustomerSpending:
    customer_id: int
    customer_name: str
    order_count: int
    total_spent: Decimal


@dataclass(frozen=True)
class OrderReport:
    """
    Aggregate figures read from the store in one transaction.

    Attributes:
        total_orders (int): Number of orders.
        total_revenue (Decimal): Sum of all order totals.
        orders_by_status (Dict[OrderStatus, int]): Order count per status present in the store.
        top_customers (List[CustomerSpending]): Best customers by amount spent.
    """
    total_orders: int
    total_revenue: Decimal
    orders_by_status: Dict[OrderStatus, int]
    top_customers: List[CustomerSpending]


def _cents(column):
    # Money is summed as whole cents; SQLite keeps NUMERIC values as REAL.
    return cast(func.round(column * 100), BigInteger)


def _from_cents(cents) -> Decimal:
    return (Decimal(int(cents or 0)) / 100).quantize(CENT)


class CustomerRepository(ABC):

    @abstractmethod
    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        ...

    @abstractmethod
    def add(self, customer: Customer):
        ...

    @abstractmethod
    def delete(self, customer: Customer):
        ...

    @abstractmethod
    def save(self):
        ...


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Optional[Order]:
        ...

    @abstractmethod
    def get_last(self) -> Optional[Order]:
        ...

    @abstractmethod
    def add(self, order: Order):
        ...

    @abstractmethod
    def delete(self, order: Order):
        ...

    @abstractmethod
    def save(self):
        ...

    @abstractmethod
    def next_order_number(self, year: int) -> str:
        ...

    @abstractmethod
    def list_summaries(self, page: int, page_size: int) -> List[OrderSummaryRow]:
        ...

    @abstractmethod
    def build_report(self, top: int = 5) -> OrderReport:
        ...


def _commit(session: Session, what: str):
    """
    Commits the session, translating constraint violations into conflicts.

    Raises:
        ConflictError: If the store rejects the write (unique or foreign key violation).
    """
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        log.warning(f"Write rejected by the store ({what}): {e.orig}")
        raise ConflictError(f"{what} conflicts with existing data") from e


class SqlAlchemyCustomerRepository(CustomerRepository):
    """Customer store backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        return self.session.get(Customer, customer_id)

    def add(self, customer: Customer):
        self.session.add(customer)

    def delete(self, customer: Customer):
        """
        Marks a customer for deletion.

        Raises:
            ConflictError: If any order still references the customer.
        """
        order_count = self.session.scalar(
            select(func.count(Order.id)).where(Order.customer_id == customer.id)
        )
        if order_count:
            raise ConflictError(f"Customer {customer.id} still has {order_count} order(s)")
        self.session.delete(customer)

    def save(self):
        _commit(self.session, "Customer")


class SqlAlchemyOrderRepository(OrderRepository):
    """Order store backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, order_id: int) -> Optional[Order]:
        return self.session.scalar(
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        )

    def get_last(self) -> Optional[Order]:
        """Returns the most recently inserted order, or None for an empty store."""
        return self.session.scalar(select(Order).order_by(Order.id.desc()).limit(1))

    def add(self, order: Order):
        self.session.add(order)

    def delete(self, order: Order):
        self.session.delete(order)

    def save(self):
        _commit(self.session, "Order")

    def next_order_number(self, year: int) -> str:
        """
        Reserves the next sequence value for `year` and formats it.

        The reservation belongs to the current transaction: it becomes visible
        to other writers on commit and disappears on rollback.

        Args:
            year (int): Calendar year the number is issued for.

        Returns:
            str: Order number like "ORD-2025-00042".
        """
        increment = (
            update(OrderSequence)
            .where(OrderSequence.year == year)
            .values(last_value=OrderSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(increment)

        if result.rowcount == 0:
            # First number of the year. A concurrent writer may insert the same
            # row first; the savepoint keeps our transaction usable in that case.
            try:
                with self.session.begin_nested():
                    self.session.add(OrderSequence(year=year, last_value=1))
                return format_order_number(year, 1)
            except IntegrityError:
                self.session.execute(increment)

        value = self.session.scalar(
            select(OrderSequence.last_value).where(OrderSequence.year == year)
        )
        return format_order_number(year, value)

    def list_summaries(self, page: int, page_size: int) -> List[OrderSummaryRow]:
        """
        Returns one page of order summaries, newest first.

        Args:
            page (int): 1-based page index.
            page_size (int): Number of orders per page.
        """
        item_count = func.count(OrderItem.id).label("item_count")
        stmt = (
            select(Order, Customer.name, item_count)
            .join(Customer, Customer.id == Order.customer_id)
            .outerjoin(OrderItem, OrderItem.order_id == Order.id)
            .group_by(Order.id, Customer.name)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return [
            OrderSummaryRow(order=order, customer_name=customer_name, item_count=count)
            for order, customer_name, count in self.session.execute(stmt)
        ]

    def build_report(self, top: int = 5) -> OrderReport:
        """
        Aggregates order count, revenue, status distribution and top customers.

        All queries run in the session's current transaction, so the figures
        describe one consistent state of the store. Amounts are summed as
        integer cents, so the totals are exact on every backend. Customers
        with equal spending are ordered by id.

        Args:
            top (int): Number of customers in the ranking.
        """
        total_orders, revenue_cents = self.session.execute(
            select(func.count(Order.id), func.sum(_cents(Order.total_amount)))
        ).one()

        by_status = self.session.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status)
        ).all()

        spent_cents = func.sum(_cents(Order.total_amount)).label("spent_cents")
        top_rows = self.session.execute(
            select(Customer.id, Customer.name, func.count(Order.id), spent_cents)
            .join(Order, Order.customer_id == Customer.id)
            .group_by(Customer.id, Customer.name)
            .order_by(spent_cents.desc(), Customer.id.asc())
            .limit(top)
        ).all()

        return OrderReport(
            total_orders=total_orders,
            total_revenue=_from_cents(revenue_cents),
            orders_by_status={
                status: count for status, count in sorted(by_status, key=lambda row: row[0].value)
            },
            top_customers=[
                CustomerSpending(
                    customer_id=customer_id,
                    customer_name=name,
                    order_count=count,
                    total_spent=_from_cents(cents),
                )
                for customer_id, name, count, cents in top_rows
            ],
        )
