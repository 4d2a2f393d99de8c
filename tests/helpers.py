from decimal import Decimal

from order_service.entities import Customer
from order_service.models import CreateOrderItemRequest

TEST_CUSTOMER_ID = 100


def make_item(name="Test Product", sku="SKU-001", quantity=1, unit_price="10.00"):
    return CreateOrderItemRequest(
        productName=name,
        productSku=sku,
        quantity=quantity,
        unitPrice=Decimal(unit_price),
    )


def add_customer(session, customer_id=TEST_CUSTOMER_ID, name="Test Customer"):
    session.add(Customer(id=customer_id, name=name, email=f"customer{customer_id}@example.com"))
    session.commit()
    return customer_id
