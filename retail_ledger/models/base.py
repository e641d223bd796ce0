"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db().

Two backends are supported, selected by DATABASE_URL:
PostgreSQL (multi-connection) and SQLite (single-writer,
embedded). Both must give the same all-or-nothing unit of work.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from retail_ledger.config import get_settings

settings = get_settings()


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def configure_sqlite_transactions(engine: Engine) -> None:
    """
    Make pysqlite honour SQLAlchemy's transaction boundaries.

    The sqlite3 driver otherwise begins transactions lazily on its
    own and breaks SAVEPOINT handling. With driver autocommit off
    and an explicit BEGIN on every SQLAlchemy "begin" event, a
    session transaction or savepoint is a real all-or-nothing unit.
    Foreign keys are enabled so receipt deletion cascades.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str) -> Engine:
    if is_sqlite_url(url):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
        )
        configure_sqlite_transactions(engine)
        return engine

    # pool_pre_ping=True tests connections before using them,
    # which handles cases where the database restarted or a
    # connection went stale.
    return create_engine(url, pool_pre_ping=True)


# --- Engine ---
engine = build_engine(settings.DATABASE_URL)

# --- Session Factory ---
# autocommit=False means we explicitly control when changes
# are saved. autoflush=False means SQL is only sent when we
# flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The session is the storage handle every service receives.
    The try/finally pattern ensures the session is always
    closed, preventing connection leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
