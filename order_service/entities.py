"""
entities.py — Relational Domain Entities

SQLAlchemy models for the three business tables plus the per-year counter that
backs order numbering.

Tables:
    - customers:        Customer master data (immutable once created)
    - orders:           Order header, cached total and status
    - order_items:      Line items, deleted together with their order
    - order_sequences:  Last issued order sequence value per calendar year
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from .database import Base

MONEY = Numeric(18, 2)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the tables."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class OrderStatus(enum.IntEnum):
    """Lifecycle status of an order. Values are part of the public API."""
    Pending = 0
    Confirmed = 1
    Processing = 2
    Shipped = 3
    Delivered = 4
    Cancelled = 5


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Read-only back-reference; deletes are restricted while orders exist.
    orders = relationship("Order", viewonly=True)


class Order(Base):
    """
    Order header.

    `total_amount` is a cached copy of the sum of the item line totals and is
    refreshed through `calculate_total()` whenever the items change.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(50), nullable=False, unique=True)
    customer_id = Column(
        Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status = Column(Enum(OrderStatus, name="order_status"), nullable=False, default=OrderStatus.Pending)
    total_amount = Column(MONEY, nullable=False, default=Decimal("0.00"))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True)

    customer = relationship("Customer")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )

    def calculate_total(self) -> Decimal:
        """Recomputes and stores the order total from the current items."""
        self.total_amount = sum((item.total_price for item in self.items), Decimal("0.00"))
        return self.total_amount


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_name = Column(String(200), nullable=False)
    product_sku = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(MONEY, nullable=False)

    order = relationship("Order", back_populates="items")

    @property
    def total_price(self) -> Decimal:
        # Never stored, always derived.
        return Decimal(self.quantity) * Decimal(self.unit_price)


class OrderSequence(Base):
    """Per-year counter; one row per calendar year that has issued numbers."""
    __tablename__ = "order_sequences"

    year = Column(Integer, primary_key=True, autoincrement=False)
    last_value = Column(Integer, nullable=False, default=0)
