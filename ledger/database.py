"""
Database session management for Autoledger.

Provides the engine, the request-scoped session and a guard that turns
store failures into DatabaseError so the API reports them uniformly.
"""

import logging
import time
from contextlib import contextmanager

from config import Config
from exceptions import DatabaseError, QueryTimeoutError
from flask import g
from models import get_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError, TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.orm import scoped_session, sessionmaker

logger = logging.getLogger(__name__)

engine = get_engine(Config.DATABASE_URL)
SessionLocal = scoped_session(sessionmaker(bind=engine))

SLOW_QUERY_THRESHOLD_MS = Config.SLOW_QUERY_THRESHOLD_MS


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Record query start time."""
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow history/statistics queries."""
    duration_ms = (time.time() - conn.info["query_start_time"].pop(-1)) * 1000

    if duration_ms > SLOW_QUERY_THRESHOLD_MS:
        truncated_query = statement[:200] + "..." if len(statement) > 200 else statement
        logger.warning(
            f"Slow query detected: {duration_ms:.2f}ms - {truncated_query}", extra={"duration_ms": duration_ms}
        )


# PostgreSQL query_canceled, raised when statement_timeout fires
QUERY_CANCELED_PGCODE = "57014"


def is_query_timeout(error: SQLAlchemyError) -> bool:
    """True for connection pool timeouts and server-side statement timeouts."""
    if isinstance(error, SQLAlchemyTimeoutError):
        return True
    return getattr(getattr(error, "orig", None), "pgcode", None) == QUERY_CANCELED_PGCODE


@contextmanager
def store_access(operation: str):
    """
    Wrap reads against the maintenance/fuel stores.

    Any SQLAlchemy failure is logged once and re-raised as DatabaseError
    (QueryTimeoutError when the query timed out). Nothing is retried and no
    partial result escapes.

    Example:
        >>> with store_access("count_fuel_events"):
        ...     total = query.count()
    """
    try:
        yield
    except SQLAlchemyError as e:
        if is_query_timeout(e):
            logger.exception(f"Store timeout during {operation}")
            raise QueryTimeoutError(f"Store timeout during {operation}", {"operation": operation}) from e
        logger.exception(f"Store failure during {operation}")
        raise DatabaseError(f"Store failure during {operation}", {"operation": operation}) from e


def get_db():
    """
    Get database session for the current request.

    Uses Flask's application context to store the session,
    ensuring proper cleanup at the end of each request.
    """
    if "db" not in g:
        g.db = SessionLocal()
    return g.db


def close_db(exception=None):
    """Release the request session; closing it discards any open read transaction."""
    db = g.pop("db", None)
    if db is not None:
        SessionLocal.remove()


def init_app(app):
    """Register the teardown that closes request sessions."""
    app.teardown_appcontext(close_db)
