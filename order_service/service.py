"""
service.py — Business Rules for Orders and Customers

This module contains the order workflow of the service. It validates the
request against the store, assigns the order number, computes totals and
delegates persistence to the repositories.

Order creation overview:
1. Resolve the customer (NotFoundError if absent)
2. Reject an empty item list (ValidationError)
3. Build the order and its items, compute the exact decimal total
4. Reserve the next order number of the current UTC year
5. Persist order, items and sequence increment in one commit (ConflictError on constraint violation)
"""

from typing import List, Optional

from .entities import Customer, Order, OrderItem, OrderStatus, utcnow
from .errors import NotFoundError, ValidationError
from .logging_config import get_logger
from .models import CreateOrderItemRequest, CustomerResponse, OrderResponse
from .repositories import CustomerRepository, OrderRepository

log = get_logger(__name__)


class OrderService:
    """
    Orchestrates creation, retrieval, status changes and deletion of orders.

    Args:
        orders (OrderRepository): Order store.
        customers (CustomerRepository): Customer store, used to validate and resolve owners.
    """

    def __init__(self, orders: OrderRepository, customers: CustomerRepository):
        self.orders = orders
        self.customers = customers

    def create_order(self, customer_id: int, items: List[CreateOrderItemRequest]) -> OrderResponse:
        """
        Places a new order for an existing customer.

        Args:
            customer_id (int): Id of the ordering customer.
            items (List[CreateOrderItemRequest]): Product lines, at least one.

        Returns:
            OrderResponse: The persisted order with id, order number, total and customer name.

        Raises:
            NotFoundError: If the customer does not exist.
            ValidationError: If `items` is empty.
            ConflictError: If the store rejects the order, e.g. because the
                customer was deleted concurrently. A retry is safe.
        """
        log.info(f"[Customer: {customer_id}] Creating order with {len(items)} item(s).")

        customer = self.customers.get_by_id(customer_id)
        if customer is None:
            log.warning(f"[Customer: {customer_id}] Rejected: customer not found.")
            raise NotFoundError("customer", customer_id)

        if not items:
            log.warning(f"[Customer: {customer_id}] Rejected: order has no items.")
            raise ValidationError("Order must have at least one item")

        order = Order(
            customer_id=customer.id,
            status=OrderStatus.Pending,
            created_at=utcnow(),
        )
        for item in items:
            order.items.append(OrderItem(
                product_name=item.productName,
                product_sku=item.productSku,
                quantity=item.quantity,
                unit_price=item.unitPrice,
            ))
        order.calculate_total()
        order.order_number = self.orders.next_order_number(order.created_at.year)

        self.orders.add(order)
        self.orders.save()

        log.info(f"[Order: {order.id}] Created {order.order_number} (total {order.total_amount}).")
        return OrderResponse.from_entity(order, customer.name)

    def get_order(self, order_id: int) -> Optional[OrderResponse]:
        """
        Returns the order with its items, or None if no such order exists.
        """
        log.info(f"[Order: {order_id}] Loading order.")
        order = self.orders.get_by_id(order_id)
        if order is None:
            return None

        customer = self.customers.get_by_id(order.customer_id)
        return OrderResponse.from_entity(order, customer.name if customer else "")

    def update_status(self, order_id: int, status: OrderStatus):
        """
        Sets a new status. Any status may follow any other.

        Raises:
            NotFoundError: If the order does not exist.
        """
        order = self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("order", order_id)

        previous = order.status
        order.status = status
        order.updated_at = utcnow()
        self.orders.save()
        log.info(f"[Order: {order_id}] Status {previous.name} -> {status.name}.")

    def delete_order(self, order_id: int):
        """
        Deletes an order together with its items.

        Raises:
            NotFoundError: If the order does not exist.
        """
        order = self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("order", order_id)

        self.orders.delete(order)
        self.orders.save()
        log.info(f"[Order: {order_id}] Deleted.")


class CustomerService:
    """Creation, lookup and deletion of customers. Customers are never updated."""

    def __init__(self, customers: CustomerRepository):
        self.customers = customers

    def create_customer(self, name: str, email: str) -> CustomerResponse:
        customer = Customer(name=name, email=email, created_at=utcnow())
        self.customers.add(customer)
        self.customers.save()
        log.info(f"[Customer: {customer.id}] Created.")
        return CustomerResponse.from_entity(customer)

    def get_customer(self, customer_id: int) -> CustomerResponse:
        customer = self.customers.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)
        return CustomerResponse.from_entity(customer)

    def delete_customer(self, customer_id: int):
        """
        Deletes a customer that owns no orders.

        Raises:
            NotFoundError: If the customer does not exist.
            ConflictError: If orders still reference the customer.
        """
        customer = self.customers.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)

        self.customers.delete(customer)
        self.customers.save()
        log.info(f"[Customer: {customer_id}] Deleted.")
