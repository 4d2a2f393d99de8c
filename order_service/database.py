"""
database.py — SQLAlchemy Engine and Session Management

Owns the connection to the relational store and hands out request-scoped
sessions. SQLite connections get foreign-key enforcement switched on and open
every transaction with BEGIN IMMEDIATE, so concurrent writers queue on the
database lock instead of interleaving reads and writes of the order sequence.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from .logging_config import get_logger

log = get_logger(__name__)

Base = declarative_base()


def _configure_sqlite(engine):
    @event.listens_for(engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself instead of the driver.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Engine plus session factory for one database URL.

    Args:
        url (str): SQLAlchemy connection URL.
        busy_timeout (float): Seconds a SQLite connection waits for a lock.
    """

    def __init__(self, url: str, busy_timeout: float = 30.0):
        self.url = make_url(url)
        connect_args = {}
        if self.url.get_backend_name() == "sqlite":
            connect_args = {"check_same_thread": False, "timeout": busy_timeout}

        self.engine = create_engine(self.url, connect_args=connect_args, future=True)
        if self.url.get_backend_name() == "sqlite":
            _configure_sqlite(self.engine)

        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self):
        """Creates all tables that do not exist yet."""
        # Tables register on Base when the entity module is imported.
        from . import entities  # noqa: F401

        Base.metadata.create_all(self.engine)
        log.info(f"Database schema ready ({self.url.render_as_string(hide_password=True)}).")

    def session(self):
        """Returns a new ORM session bound to this database."""
        return self.session_factory()

    def dispose(self):
        self.engine.dispose()

    def session_scope(self):
        """
        Yields one session per request and closes it afterwards.

        Used as a FastAPI dependency; uncommitted work is rolled back on close.
        """
        session = self.session()
        try:
            yield session
        finally:
            session.close()
