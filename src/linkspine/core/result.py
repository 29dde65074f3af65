"""
Result envelope for consistent success/failure handling.

Provides a typed ``Result[T]`` pattern for batch steps where one bad record
must not abort the whole batch: decoding a delimited link field yields one
``Ok`` per valid ``sku|qty|position`` triple and one ``Err`` per malformed
triple, and the caller partitions them.

Architecture:
    ::

        ┌─────────────────┬─────────────────┬─────────────────────────┐
        │     Ok[T]       │     Err[T]      │     Utilities           │
        ├─────────────────┼─────────────────┼─────────────────────────┤
        │ • value: T      │ • error: Exc    │ • try_result()          │
        │ • map()         │ • map_err()     │ • partition_results()   │
        │ • unwrap()      │ • unwrap_or()   │                         │
        └─────────────────┴─────────────────┴─────────────────────────┘

Examples:
    >>> results = [Ok(1), Err(ValueError("bad")), Ok(2)]
    >>> values, errors = partition_results(results)
    >>> values
    [1, 2]
    >>> len(errors)
    1

Tags:
    result-pattern, error-handling, batch-processing, linkspine
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value if Ok."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an error.

    ``map()`` short-circuits and returns the same Err unchanged.
    """

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the contained error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return self  # type: ignore[return-value]

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def to_dict(self) -> dict[str, Any]:
        error = self.error
        if hasattr(error, "to_dict"):
            return {"ok": False, "error": error.to_dict()}
        return {"ok": False, "error": {"error_type": type(error).__name__, "message": str(error)}}

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """Run ``f`` and capture its return value or raised exception."""
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


def partition_results(results: Iterable[Result[T]]) -> tuple[list[T], list[Exception]]:
    """
    Partition results into successes and failures.

    Always returns both lists so the caller can continue with the valid
    values while reporting the errors.
    """
    values = []
    errors = []
    for result in results:
        match result:
            case Ok(value):
                values.append(value)
            case Err(error):
                errors.append(error)
    return values, errors


__all__ = [
    "Ok",
    "Err",
    "Result",
    "try_result",
    "partition_results",
]
