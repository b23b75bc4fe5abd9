"""Database connection and session management."""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hostel_billing.services.config import DEFAULT_DATABASE_URL
from hostel_billing.services.db import UnitOfWork

# Default database URL, read once at import; callers holding a loaded
# BillingConfig pass its database_url to unit_of_work() instead
DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def build_engine(database_url: str) -> Engine:
    """Create an engine (SQLite uses StaticPool for simplicity in dev/test)."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


engine = build_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_session_factories: dict[str, sessionmaker] = {DATABASE_URL: SessionLocal}


def get_session_factory(database_url: str | None = None) -> sessionmaker:
    """Session factory bound to database_url, one engine per URL.

    Without a URL the import-time default (SessionLocal) is returned.
    """
    if database_url is None:
        return SessionLocal
    if database_url not in _session_factories:
        _session_factories[database_url] = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=build_engine(database_url),
        )
    return _session_factories[database_url]


def unit_of_work(database_url: str | None = None) -> UnitOfWork:
    """Unit of work on the given database, or the default one."""
    return UnitOfWork(get_session_factory(database_url))


__all__ = [
    "engine",
    "SessionLocal",
    "build_engine",
    "get_session_factory",
    "unit_of_work",
    "UnitOfWork",
]
