"""
Common API schemas: success envelope and RFC 7807 errors.

Every endpoint returns either a resource body (200) or a
:class:`ProblemDetail` (4xx/5xx).
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Structured detail for one rejected input."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Input field or row the error refers to")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Error Codes:
        - ``NOT_FOUND`` (404): Source product does not exist
        - ``VALIDATION_FAILED`` (400): Unknown link kind, unknown linked id,
          malformed row
        - ``UNAVAILABLE`` (503): Store failure, retry later
        - ``INTERNAL`` (500): Unexpected server error
    """

    type: str = Field(default="about:blank", description="Error type URI")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Human-readable explanation")
    instance: str = Field(default="", description="URI of the failing request")
    errors: list[ErrorDetail] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict, description="Ids involved in the failure")


class SuccessResponse(BaseModel, Generic[T]):
    """Success envelope for write endpoints."""

    data: T = Field(description="Response payload")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(default_factory=list)
