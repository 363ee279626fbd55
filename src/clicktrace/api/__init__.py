"""HTTP API routers."""

from clicktrace.api.traces import router as traces_router

__all__ = ["traces_router"]
