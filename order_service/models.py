"""
models.py — Request and Response Models of the Order API

This module defines the data structures exchanged over HTTP.
It uses Pydantic models to ensure type safety and automatic validation of incoming data.
Field names are camelCase because they are part of the public wire format.

Models:
    - CreateOrderItemRequest / CreateOrderRequest: Payload for placing an order.
    - UpdateOrderStatusRequest: Payload for changing the status of an order.
    - OrderItemResponse / OrderResponse: Full order detail.
    - OrderSummaryResponse: One row of the paginated order listing.
    - CustomerOrderSummary / OrderReportResponse: Aggregate report.
    - CreateCustomerRequest / CustomerResponse: Customer master data.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, Field, PlainSerializer

from .entities import Customer, Order, OrderItem, OrderStatus
from .repositories import OrderReport, OrderSummaryRow

# Exact decimal inside the service, plain JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CreateOrderItemRequest(BaseModel):
    """
    Represents a single product line of a new order.

    Attributes:
        productName (str): Display name of the product.
        productSku (str): The product identifier (Stock Keeping Unit).
        quantity (int): Ordered quantity. Must be greater than zero.
        unitPrice (Decimal): Price per unit, non-negative, at most two fraction digits.
    """
    productName: str = Field(..., min_length=1, max_length=200)
    productSku: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(..., gt=0)  # gt=0 means "greater than 0"
    unitPrice: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)


class CreateOrderRequest(BaseModel):
    """
    Represents a request to place a new order.

    An empty `items` list is accepted here and rejected by the service,
    which reports it as a business validation error.

    Attributes:
        customerId (int): Id of an existing customer.
        items (List[CreateOrderItemRequest]): Ordered product lines.
    """
    customerId: int
    items: List[CreateOrderItemRequest] = Field(default_factory=list)


class UpdateOrderStatusRequest(BaseModel):
    """
    Represents a status change of an existing order.

    Attributes:
        status (OrderStatus): Target status as its integer value. Any status may follow any other.
    """
    status: OrderStatus


class OrderItemResponse(BaseModel):
    """
    A single line of an order.

    Attributes:
        id (int): Line item id.
        productName (str): Display name of the product.
        productSku (str): Product identifier (SKU).
        quantity (int): Ordered quantity.
        unitPrice (Decimal): Price per unit.
        totalPrice (Decimal): quantity × unitPrice, computed on every read.
    """
    id: int
    productName: str
    productSku: str
    quantity: int
    unitPrice: Money
    totalPrice: Money

    @classmethod
    def from_entity(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            id=item.id,
            productName=item.product_name,
            productSku=item.product_sku,
            quantity=item.quantity,
            unitPrice=item.unit_price,
            totalPrice=item.total_price,
        )


class OrderResponse(BaseModel):
    """
    Full order detail as returned by create and retrieve.

    `customerName` is resolved from the owning customer for convenience;
    it is not stored on the order.
    """
    id: int
    orderNumber: str
    customerId: int
    customerName: str
    status: OrderStatus
    totalAmount: Money
    createdAt: datetime
    updatedAt: Optional[datetime] = None
    items: List[OrderItemResponse]

    @classmethod
    def from_entity(cls, order: Order, customer_name: str) -> "OrderResponse":
        return cls(
            id=order.id,
            orderNumber=order.order_number,
            customerId=order.customer_id,
            customerName=customer_name,
            status=order.status,
            totalAmount=order.total_amount,
            createdAt=order.created_at,
            updatedAt=order.updated_at,
            items=[OrderItemResponse.from_entity(item) for item in order.items],
        )


class OrderSummaryResponse(BaseModel):
    """
    One entry of the paginated order listing.

    Attributes:
        id (int): Order id.
        orderNumber (str): Human-readable order number.
        customerName (str): Name of the ordering customer.
        status (OrderStatus): Current status.
        totalAmount (Decimal): Order total.
        itemCount (int): Number of line items.
        createdAt (datetime): Creation time (UTC).
    """
    id: int
    orderNumber: str
    customerName: str
    status: OrderStatus
    totalAmount: Money
    itemCount: int
    createdAt: datetime

    @classmethod
    def from_row(cls, row: OrderSummaryRow) -> "OrderSummaryResponse":
        return cls(
            id=row.order.id,
            orderNumber=row.order.order_number,
            customerName=row.customer_name,
            status=row.order.status,
            totalAmount=row.order.total_amount,
            itemCount=row.item_count,
            createdAt=row.order.created_at,
        )


class CustomerOrderSummary(BaseModel):
    """
    One customer in the report ranking.

    Attributes:
        customerId (int): Customer id.
        customerName (str): Customer display name.
        orderCount (int): Number of orders placed by the customer.
        totalSpent (Decimal): Sum of the customer's order totals.
    """
    customerId: int
    customerName: str
    orderCount: int
    totalSpent: Money


class OrderReportResponse(BaseModel):
    """
    Aggregate figures over all orders.

    Attributes:
        totalOrders (int): Number of orders in the store.
        totalRevenue (Decimal): Sum of all order totals.
        ordersByStatus (Dict[str, int]): Order count per status name, statuses without orders omitted.
        topCustomers (List[CustomerOrderSummary]): Up to five customers by amount spent.
    """
    totalOrders: int
    totalRevenue: Money
    ordersByStatus: Dict[str, int]
    topCustomers: List[CustomerOrderSummary]

    @classmethod
    def from_report(cls, report: OrderReport) -> "OrderReportResponse":
        return cls(
            totalOrders=report.total_orders,
            totalRevenue=report.total_revenue,
            ordersByStatus={status.name: count for status, count in report.orders_by_status.items()},
            topCustomers=[
                CustomerOrderSummary(
                    customerId=entry.customer_id,
                    customerName=entry.customer_name,
                    orderCount=entry.order_count,
                    totalSpent=entry.total_spent,
                )
                for entry in report.top_customers
            ],
        )


class CreateCustomerRequest(BaseModel):
    """
    Represents a new customer.

    Attributes:
        name (str): Display name.
        email (str): Contact address; must contain a single "@".
    """
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+$")


class CustomerResponse(BaseModel):
    """
    Customer master data. Customers are immutable once created.

    Attributes:
        id (int): Customer id.
        name (str): Display name.
        email (str): Contact address.
        createdAt (datetime): Creation time (UTC).
    """
    id: int
    name: str
    email: str
    createdAt: datetime

    @classmethod
    def from_entity(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            createdAt=customer.created_at,
        )
