import pytest
from fastapi.testclient import TestClient

from order_service.config import Settings
from order_service.database import Database
from order_service.main import create_app
from order_service.repositories import SqlAlchemyCustomerRepository, SqlAlchemyOrderRepository
from order_service.service import OrderService
from tests.helpers import add_customer


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'orders.db'}",
        log_file="",
        seed_database=False,
    )


@pytest.fixture
def database(settings):
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session() as s:
        yield s


@pytest.fixture
def customer_id(session):
    return add_customer(session)


@pytest.fixture
def order_service(session):
    return OrderService(SqlAlchemyOrderRepository(session), SqlAlchemyCustomerRepository(session))


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        with app.state.database.session() as s:
            add_customer(s)
        yield c


@pytest.fixture
def seeded_client(settings):
    app = create_app(Settings(
        database_url=settings.database_url,
        log_file="",
        seed_database=True,
    ))
    with TestClient(app) as c:
        yield c
