"""
Operation result envelope.

Every function in :mod:`linkspine.ops` returns an :class:`OperationResult`
instead of raising. The CLI and the API read ``success``/``error.code`` and
decide exit codes and HTTP statuses from that; neither layer catches
domain exceptions itself.

Codes:
    NOT_FOUND          source product does not exist (write paths)
    VALIDATION_FAILED  malformed or unresolvable posted/imported rows
    UNAVAILABLE        store failure, retryable
    INTERNAL           anything else
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from linkspine.core.errors import (
    ErrorCategory,
    InvalidLinkRowError,
    LinkSpineError,
    SourceNotFoundError,
    StoreUnavailableError,
    UnknownLinkKindError,
    ValidationError,
    categorize_error,
)

NOT_FOUND = "NOT_FOUND"
VALIDATION_FAILED = "VALIDATION_FAILED"
UNAVAILABLE = "UNAVAILABLE"
INTERNAL = "INTERNAL"


@dataclass(frozen=True, slots=True)
class OperationError:
    """Why an operation failed.

    Attributes:
        code: One of the module-level codes.
        message: Human-readable reason.
        category: Error category of the underlying exception.
        details: Structured context (source id, offending row, ...).
        retryable: Whether trying again may succeed.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False


def error_code(exc: Exception) -> str:
    """Map an exception to an operation error code."""
    if isinstance(exc, SourceNotFoundError):
        return NOT_FOUND
    if isinstance(exc, (InvalidLinkRowError, ValidationError, UnknownLinkKindError, ValueError)):
        return VALIDATION_FAILED
    if isinstance(exc, StoreUnavailableError):
        return UNAVAILABLE
    return INTERNAL


T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    """Envelope returned by every operation function.

    Use :meth:`ok`, :meth:`fail` or :meth:`from_exception` rather than the
    constructor.
    """

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        return cls(
            success=True,
            data=data,
            warnings=warnings or [],
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        return cls(
            success=False,
            error=OperationError(
                code=code,
                message=message,
                category=category,
                details=details or {},
                retryable=retryable,
            ),
            warnings=warnings or [],
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        *,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        """Failed result carrying the code, category and context of ``exc``."""
        details: dict[str, Any] = {}
        retryable = False
        message = str(exc)
        if isinstance(exc, LinkSpineError):
            details = exc.context.to_dict()
            retryable = exc.retryable
            message = exc.message
            row = getattr(exc, "row", None)
            if row is not None:
                details["row"] = row
        return cls.fail(
            error_code(exc),
            message,
            category=categorize_error(exc),
            details=details,
            retryable=retryable,
            elapsed_ms=elapsed_ms,
            metadata=metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for JSON output."""
        d: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            d["data"] = self.data
        if self.error is not None:
            d["error"] = {
                "code": self.error.code,
                "message": self.error.message,
                "retryable": self.error.retryable,
            }
            if self.error.details:
                d["error"]["details"] = self.error.details
        if self.warnings:
            d["warnings"] = self.warnings
        if self.elapsed_ms:
            d["elapsed_ms"] = round(self.elapsed_ms, 2)
        if self.metadata:
            d["metadata"] = self.metadata
        return d


class _Timer:
    __slots__ = ("_start",)

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000


def start_timer() -> _Timer:
    """Stopwatch; read ``timer.elapsed_ms`` when done."""
    return _Timer()
