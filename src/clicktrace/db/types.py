"""Data structures for the database access layer."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class BuiltQuery:
    """A statement with binds named ``<bind_prefix><position>``.

    ``args`` is the positional argument list; ``params`` maps it onto the
    named binds of the statement text in the same order.
    """

    sql: str
    args: tuple[Any, ...] = ()
    bind_prefix: str = "arg"

    @property
    def params(self) -> dict[str, Any]:
        return {f"{self.bind_prefix}{i}": value for i, value in enumerate(self.args)}

    @staticmethod
    def placeholder(bind_prefix: str, position: int) -> str:
        return f":{bind_prefix}{position}"
