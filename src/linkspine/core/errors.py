"""
Structured error types for linkspine.

Provides a small typed hierarchy of errors with metadata for retry
decisions, categorization and logging, covering the failure modes of
linked-entity resolution and link maintenance.

Read paths (resolving a link set for display, export or a query response)
never surface these errors to their callers: the resolution pipeline
catches them at its boundary and degrades to an empty result. Write paths
(saving posted links, importing a CSV field, duplicating a product's links)
raise them so the caller can reject the operation with a reason.

Manifesto:
    - **Typed Error Hierarchy:** One error type per failure mode
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry source id, link kind and row data
    - **Error Chaining:** Store driver exceptions are kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       LinkSpineError                          │
        │  (category, retryable, context, cause)                       │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  SourceError              ValidationError      ConfigError    │
        │  (SOURCE)                 (VALIDATION)         (CONFIG)       │
        │     │                          │                              │
        │  SourceNotFoundError      InvalidLinkRowError                 │
        │                                         UnknownLinkKindError  │
        │                                                               │
        │  StoreUnavailableError                                        │
        │  (DATABASE, retryable)                                        │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = SourceNotFoundError("Product 42 does not exist")
    >>> error.with_context(source_id=42, link_kind="partlists")
    SourceNotFoundError('Product 42 does not exist', category=SOURCE)
    >>> error.context.source_id
    42

    >>> try:
    ...     raise sqlite3.OperationalError("database is locked")
    ... except sqlite3.Error as e:
    ...     raise StoreUnavailableError("Link fetch failed", cause=e)
    Traceback (most recent call last):
    ...
    StoreUnavailableError: Link fetch failed

Guardrails:
    ❌ DON'T: Raise from the read-side pipeline into rendering code
    ✅ DO: Let ResolutionPipeline degrade to an empty result

    ❌ DON'T: Swallow the original driver exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    linkspine
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Grouped by typical retry behavior:
    - **Infrastructure (usually transient):** DATABASE
    - **Data errors:** SOURCE, PARSE, VALIDATION
    - **Configuration (never retryable):** CONFIG
    - **Internal errors:** INTERNAL
    """

    DATABASE = "DATABASE"
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured context attached to an error.

    Attributes:
        source_id: Id of the entity owning the link set
        link_kind: Code of the link kind being resolved or written
        linked_id: Id of the linked entity involved, if any
        operation: Name of the operation that failed (``resolve``, ``save``)
        metadata: Additional key-value pairs
    """

    source_id: int | None = None
    link_kind: str | None = None
    linked_id: int | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["source_id", "link_kind", "linked_id", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class LinkSpineError(Exception):
    """
    Base exception for all linkspine errors.

    Subclasses set ``default_category`` and ``default_retryable`` class
    attributes to provide sensible defaults for their failure mode.

    Examples:
        >>> error = LinkSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["retryable"]
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> LinkSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceNotFoundError("Missing").with_context(
                source_id=42, link_kind="partlists"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(LinkSpineError):
    """Error concerning an entity referenced by a link set."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class SourceNotFoundError(SourceError):
    """The subject entity owning the link set does not exist."""

    pass


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreUnavailableError(LinkSpineError):
    """Transient failure of the link record source or the bulk loader."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(LinkSpineError):
    """
    Data validation error.

    Never retryable - data must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class InvalidLinkRowError(ValidationError):
    """A posted or imported link row cannot be applied.

    Raised for non-positive ids, unresolvable skus and malformed
    ``sku|qty|position`` triples.
    """

    def __init__(self, reason: str, *, row: Any = None, **kwargs: Any):
        super().__init__(reason, **kwargs)
        self.reason = reason
        self.row = row

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.row is not None:
            result["row"] = self.row
        return result


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(LinkSpineError):
    """Configuration error (missing or invalid settings)."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class UnknownLinkKindError(ConfigError):
    """A link kind code or type id is not registered."""

    def __init__(self, kind: str | int):
        super().__init__(f"Unknown link kind: {kind!r}")
        self.kind = kind


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, LinkSpineError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Determine the category of any exception."""
    if isinstance(error, LinkSpineError):
        return error.category

    if isinstance(error, sqlite3.Error):
        return ErrorCategory.DATABASE
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "LinkSpineError",
    "SourceError",
    "SourceNotFoundError",
    "StoreUnavailableError",
    "ValidationError",
    "InvalidLinkRowError",
    "ConfigError",
    "UnknownLinkKindError",
    "is_retryable",
    "categorize_error",
]
