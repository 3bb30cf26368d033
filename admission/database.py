"""Database configuration and session dependency."""

from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from admission.config import DATABASE_URL


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """Turn on FK enforcement (and therefore ON DELETE CASCADE) for SQLite connections."""
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str = DATABASE_URL) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # Concurrent request threads share the file; wait on locks instead of failing
        connect_args = {"check_same_thread": False, "timeout": 30}
    new_engine = create_engine(url, echo=False, connect_args=connect_args)
    enable_sqlite_foreign_keys(new_engine)
    return new_engine


# echo=False to avoid noisy logs; toggle for debugging
engine = build_engine()


def create_db_and_tables(target: Engine = engine) -> None:
    """Create database tables based on SQLModel metadata."""
    SQLModel.metadata.create_all(target)


def get_session() -> Iterator[Session]:
    """FastAPI dependency that yields a database session."""
    with Session(engine) as session:
        yield session
