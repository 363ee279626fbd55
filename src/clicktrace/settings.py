"""Application settings using pydantic-settings."""

import logging
from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SETTINGS_LOGGER = logging.getLogger("clicktrace.settings")


class Settings(BaseSettings):
    """Application settings."""

    # ClickHouse
    clickhouse_url: str = "clickhouse+asynch://default:@localhost:9000/jaeger"
    query_timeout_seconds: float | None = 30.0
    # Pool sizing; None keeps the dialect default
    clickhouse_pool_size: int | None = None
    clickhouse_max_overflow: int | None = None

    # Tables (empty means "not configured"; checked at call time)
    operations_table: str = "jaeger_operations_local"
    index_table: str = "jaeger_index_local"
    spans_table: str = "jaeger_spans_local"
    archive_spans_table: str = "jaeger_archive_spans_local"

    # Query defaults
    default_num_traces: int = 20

    # Application
    app_name: str = "clicktrace"
    app_env: str = "local"
    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("query_timeout_seconds", mode="before")
    @classmethod
    def parse_query_timeout(cls, v: Any) -> float | None:
        """Treat empty, zero and negative timeouts as disabled."""
        if v is None or v == "":
            return None
        try:
            timeout = float(v)
        except (TypeError, ValueError):
            _SETTINGS_LOGGER.warning("Invalid query_timeout_seconds %r, disabling timeout", v)
            return None
        return timeout if timeout > 0 else None

    @field_validator("operations_table", "index_table", "spans_table", "archive_spans_table")
    @classmethod
    def strip_table_name(cls, v: str) -> str:
        """Strip surrounding whitespace so a blank table name reads as unset."""
        return v.strip()


@lru_cache()
def get_settings() -> Settings:
    """Get settings instance (cached)."""
    return Settings()
