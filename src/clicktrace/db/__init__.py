"""Database access layer."""

from clicktrace.db.engine import get_async_engine
from clicktrace.db.rows import execute_query, fetch_column

__all__ = ["get_async_engine", "execute_query", "fetch_column"]
