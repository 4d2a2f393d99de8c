"""
main.py — FastAPI Entry Point for the Order Service

This module provides the REST API of the order management service.
It maps HTTP requests to the service layer and the repositories and
translates business errors into HTTP status codes.

Responsibilities:
    • Create, read, update the status of, list and delete orders
    • Create, read and delete customers (deletion restricted while orders exist)
    • Provide an aggregate order report
    • Create the schema and seed demo data on startup
    • Provide system health information
"""

import os
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .config import Settings, load_settings
from .database import Database
from .errors import ConflictError, NotFoundError, OrderServiceError, ValidationError
from .logging_config import get_logger, setup_logging
from .models import (
    CreateCustomerRequest,
    CreateOrderRequest,
    CustomerResponse,
    OrderReportResponse,
    OrderResponse,
    OrderSummaryResponse,
    UpdateOrderStatusRequest,
)
from .repositories import SqlAlchemyCustomerRepository, SqlAlchemyOrderRepository
from .seed import seed_database
from .service import CustomerService, OrderService

log = get_logger(__name__)

ERROR_STATUS = {
    NotFoundError: 404,
    ValidationError: 400,
    ConflictError: 409,
}


# Dependencies
def get_session(request: Request):
    yield from request.app.state.database.session_scope()


def get_order_repository(session: Session = Depends(get_session)) -> SqlAlchemyOrderRepository:
    return SqlAlchemyOrderRepository(session)


def get_customer_repository(session: Session = Depends(get_session)) -> SqlAlchemyCustomerRepository:
    return SqlAlchemyCustomerRepository(session)


def get_order_service(
        orders: SqlAlchemyOrderRepository = Depends(get_order_repository),
        customers: SqlAlchemyCustomerRepository = Depends(get_customer_repository),
) -> OrderService:
    return OrderService(orders, customers)


def get_customer_service(
        customers: SqlAlchemyCustomerRepository = Depends(get_customer_repository),
) -> CustomerService:
    return CustomerService(customers)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


orders_router = APIRouter(prefix="/orders", tags=["orders"])
customers_router = APIRouter(prefix="/customers", tags=["customers"])


# API Endpoints: Orders
@orders_router.get("", response_model=List[OrderSummaryResponse])
def list_orders(
        page: int = Query(1, ge=1),
        pageSize: Optional[int] = Query(None, ge=1),
        orders: SqlAlchemyOrderRepository = Depends(get_order_repository),
        settings: Settings = Depends(get_settings),
):
    """
    Returns one page of order summaries, newest first.

    Args:
        page (int): 1-based page index.
        pageSize (int): Orders per page; defaults to the configured page size
            and may not exceed the configured maximum.

    Raises:
        ValidationError(400): If `pageSize` exceeds the configured maximum.
    """
    page_size = pageSize or settings.default_page_size
    if page_size > settings.max_page_size:
        raise ValidationError(f"pageSize must not exceed {settings.max_page_size}")
    return [OrderSummaryResponse.from_row(row) for row in orders.list_summaries(page, page_size)]


# Must be registered before /{order_id}, otherwise "reports" is parsed as an id.
@orders_router.get("/reports", response_model=OrderReportResponse)
def get_reports(orders: SqlAlchemyOrderRepository = Depends(get_order_repository)):
    """Order count, revenue, count per status and the top 5 customers by amount spent."""
    return OrderReportResponse.from_report(orders.build_report())


@orders_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, service: OrderService = Depends(get_order_service)):
    """
    Returns the order with its items and the name of its customer.

    Raises:
        NotFoundError(404): If no order has this id.
    """
    order = service.get_order(order_id)
    if order is None:
        raise NotFoundError("order", order_id)
    return order


@orders_router.post("", status_code=201, response_model=OrderResponse)
def create_order(
        request: CreateOrderRequest,
        response: Response,
        service: OrderService = Depends(get_order_service),
):
    """
    Places a new order.

    Returns:
        OrderResponse: The created order, with a Location header pointing to it.

    Raises:
        ValidationError(400): Unknown customer or empty item list.
        ConflictError(409): The store rejected the order; the client may retry.
    """
    try:
        order = service.create_order(request.customerId, request.items)
    except NotFoundError as e:
        # An unknown customer is a problem with the request body, not the URL.
        raise ValidationError(e.message) from e

    response.headers["Location"] = f"/orders/{order.id}"
    return order


@orders_router.patch("/{order_id}/status", status_code=204)
def update_order_status(
        order_id: int,
        request: UpdateOrderStatusRequest,
        service: OrderService = Depends(get_order_service),
):
    """
    Sets the status of an order. No transition rules apply.

    Raises:
        NotFoundError(404): If no order has this id.
    """
    service.update_status(order_id, request.status)
    return Response(status_code=204)


@orders_router.delete("/{order_id}", status_code=204)
def delete_order(order_id: int, service: OrderService = Depends(get_order_service)):
    """
    Deletes an order together with its items.

    Raises:
        NotFoundError(404): If no order has this id.
    """
    service.delete_order(order_id)
    return Response(status_code=204)


# API Endpoints: Customers
@customers_router.post("", status_code=201, response_model=CustomerResponse)
def create_customer(
        request: CreateCustomerRequest,
        response: Response,
        service: CustomerService = Depends(get_customer_service),
):
    """
    Creates a customer.

    Returns:
        CustomerResponse: The new customer, with a Location header pointing to it.
    """
    customer = service.create_customer(request.name, request.email)
    response.headers["Location"] = f"/customers/{customer.id}"
    return customer


@customers_router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, service: CustomerService = Depends(get_customer_service)):
    """
    Returns a customer.

    Raises:
        NotFoundError(404): If no customer has this id.
    """
    return service.get_customer(customer_id)


@customers_router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: int, service: CustomerService = Depends(get_customer_service)):
    """
    Deletes a customer.

    Raises:
        NotFoundError(404): The customer does not exist.
        ConflictError(409): Orders still reference the customer.
    """
    service.delete_customer(customer_id)
    return Response(status_code=204)


# Error Handlers
async def handle_service_error(request: Request, exc: OrderServiceError):
    """Maps business errors to their HTTP status with a short `detail` message."""
    status_code = ERROR_STATUS.get(type(exc), 400)
    log.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    """Reports malformed request bodies and query parameters as 400 Bad Request."""
    log.info(f"{request.method} {request.url.path} -> 400: invalid request")
    return JSONResponse(status_code=400, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    """Reduces pydantic error entries to their JSON-safe location, message and type."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Builds the FastAPI application.

    Args:
        settings (Settings): Configuration to use; read from the environment when omitted.

    Returns:
        FastAPI: The application with routers, error handlers and startup hooks.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title="Order Management API", version="1.0.0")
    app.state.settings = settings
    app.state.database = Database(settings.database_url, settings.sqlite_busy_timeout)

    app.include_router(orders_router)
    app.include_router(customers_router)
    app.add_exception_handler(OrderServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    @app.on_event("startup")
    def on_startup():
        """
        Creates the schema and, if configured, seeds an empty store.
        """
        log.info("Order service starting...")
        database = app.state.database
        database.create_all()
        if settings.seed_database:
            with database.session() as session:
                seed_database(session)

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.database.dispose()
        log.info("Order service stopped.")

    # Health Check Endpoint
    @app.get("/health")
    def health_check():
        """
        Simple health check endpoint.

        Can be used by monitoring systems or container orchestrators
        (e.g., Docker, Kubernetes) to verify that the service is running.
        """
        return {"status": "ok"}

    return app


def run():
    """Serves the application with uvicorn (console script `order-service`)."""
    import uvicorn

    uvicorn.run(
        create_app(),
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        timeout_keep_alive=5,
    )


if __name__ == "__main__":
    run()
