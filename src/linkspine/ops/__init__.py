"""
Operations layer.

Transport-agnostic functions shared by the CLI and the API. Each takes an
:class:`OperationContext` plus a request dataclass and returns an
:class:`OperationResult`.
"""

from linkspine.ops.context import OperationContext
from linkspine.ops.result import OperationError, OperationResult

__all__ = ["OperationContext", "OperationError", "OperationResult"]
