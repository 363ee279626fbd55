"""Shared ClickHouse engine for the trace reader."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from clicktrace.settings import Settings, get_settings

_engine: AsyncEngine | None = None


def engine_options(settings: Settings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    Pool sizes left unset in settings fall back to the dialect's defaults.
    """
    options: dict[str, Any] = {"echo": settings.debug}
    if settings.clickhouse_pool_size is not None:
        options["pool_size"] = settings.clickhouse_pool_size
    if settings.clickhouse_max_overflow is not None:
        options["max_overflow"] = settings.clickhouse_max_overflow
    return options


def get_async_engine() -> AsyncEngine:
    """Get or create the engine the reader borrows connections from."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(settings.clickhouse_url, **engine_options(settings))
    return _engine


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
    _engine = None


def reset_engine() -> None:
    """Forget the engine without closing it (for testing)."""
    global _engine
    _engine = None
