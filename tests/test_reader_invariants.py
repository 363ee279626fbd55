"""Static tests for the storage reader contract."""

import inspect

import pytest

from clicktrace.db.repos import SpanReader, TraceReader

CONTRACT = ["get_trace", "find_trace_ids", "find_traces", "get_services", "get_operations"]


class TestReaderInvariants:
    """The reader exposes the full contract as coroutines."""

    def test_span_reader_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            SpanReader()  # type: ignore[abstract]

    def test_trace_reader_implements_contract(self) -> None:
        assert issubclass(TraceReader, SpanReader)
        assert not TraceReader.__abstractmethods__

    @pytest.mark.parametrize("method_name", CONTRACT)
    def test_operations_are_coroutines(self, method_name: str) -> None:
        assert inspect.iscoroutinefunction(getattr(TraceReader, method_name))

    @pytest.mark.parametrize("method_name", CONTRACT)
    def test_signatures_match_contract(self, method_name: str) -> None:
        base = inspect.signature(getattr(SpanReader, method_name))
        impl = inspect.signature(getattr(TraceReader, method_name))
        assert list(impl.parameters) == list(base.parameters)

    def test_reader_state_is_fixed_configuration(self) -> None:
        """Readers hold only construction-time configuration."""
        reader = TraceReader(object(), "ops", "idx", "spans")  # type: ignore[arg-type]
        assert set(vars(reader)) == {
            "_engine",
            "_operations_table",
            "_index_table",
            "_spans_table",
            "_timeout",
        }
