"""Core read path logic independent of the database."""

from clicktrace.core.assembly import assemble_traces

__all__ = ["assemble_traces"]
