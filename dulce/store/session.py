"""
Database Session Management

Engine creation and session lifecycle for the SQL document store and
audit sink. PostgreSQL in production, SQLite for local development.
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from dulce.store.models import Base
from dulce.utils.config import get_settings

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """
    Get database URL from settings.

    postgres:// URLs are rewritten to postgresql:// for SQLAlchemy.
    """
    url = get_settings().DATABASE_URL
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def create_db_engine(url: Optional[str] = None) -> Engine:
    """
    Create database engine with appropriate settings.

    PostgreSQL: Connection pooling
    SQLite: Simpler settings, shared across threads
    """
    url = url or get_database_url()
    echo = os.getenv("SQL_DEBUG", "false").lower() == "true"

    if url.startswith("postgresql://"):
        engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,
            echo=echo,
        )
        logger.info("Created PostgreSQL engine with connection pooling")
        return engine

    options = {}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, or each worker thread sees an empty database
        options["poolclass"] = StaticPool

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False},  # Store calls run in worker threads
        echo=echo,
        **options,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    logger.info("Created SQLite engine")
    return engine


def init_db(engine: Engine) -> None:
    """Create tables if they don't exist."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified")


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Transactional scope: commit on success, rollback on error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
