"""
Shared router helpers.

- ``_dc()`` converts an ops payload dataclass to a plain dict
- ``_handle_error()`` turns a failed OperationResult into a problem response
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from linkspine.api.middleware.errors import problem_response, status_for_error_code


def _dc(obj: Any) -> dict[str, Any]:
    """Dataclass (or dict) to plain dict; ``{}`` for anything else."""
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj if isinstance(obj, dict) else {}


def _handle_error(result, instance: str = ""):
    """Problem Details response for a failed ``OperationResult``.

    The status comes from the error code; the offending row, when there
    is one, is listed under ``errors``.
    """
    if result.error is None:
        return problem_response(status=500, title="Operation failed", instance=instance)

    details = dict(result.error.details)
    errors = []
    row = details.pop("row", None)
    if row is not None:
        errors.append({"code": result.error.code, "message": result.error.message, "field": str(row)})
    return problem_response(
        status=status_for_error_code(result.error.code),
        title=result.error.message,
        detail=result.error.code,
        instance=instance,
        errors=errors,
        context=details,
    )
