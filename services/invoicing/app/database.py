"""
Database configuration and session management for the Invoicing service.

The engine (and its connection pool) is owned by the application object:
``create_app`` builds it, stores it on ``app.state`` and disposes it at
shutdown. Route handlers receive a short-lived session through ``get_db``.
"""
import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from . import config

logger = logging.getLogger(__name__)

# Base class for declarative models
Base = declarative_base()


def build_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create the SQLAlchemy engine with a bounded connection pool.

    Args:
        database_url: Connection string (defaults to DATABASE_URL)

    Returns:
        Engine: SQLAlchemy engine
    """
    url = database_url or config.DATABASE_URL
    if url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory database: every session must share the one connection
        engine = create_engine(
            url,
            echo=config.DB_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif url.startswith("sqlite"):
        engine = create_engine(url, echo=config.DB_ECHO, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(
            url,
            echo=config.DB_ECHO,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_timeout=config.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory bound to ``engine``."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the companies, products and orders tables if they are missing."""
    # Import models so they are registered on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


def get_db(request: Request):
    """
    Dependency function that provides a database session.

    Yields:
        Session: SQLAlchemy database session drawn from the app's pool

    Usage:
        Use as a FastAPI dependency to inject database sessions into route handlers.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
