"""
linkspine core primitives.

Errors, collaborator protocols, SQL dialects, the base repository,
settings and structured logging shared by every linkspine package.
"""

from linkspine.core.errors import (
    ErrorCategory,
    ErrorContext,
    InvalidLinkRowError,
    LinkSpineError,
    SourceNotFoundError,
    StoreUnavailableError,
)
from linkspine.core.protocols import (
    BulkEntityLoader,
    Connection,
    LinkedEntity,
    LinkRecordSource,
    LinkWriter,
    SkuResolver,
)

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "LinkSpineError",
    "SourceNotFoundError",
    "StoreUnavailableError",
    "InvalidLinkRowError",
    # Protocols
    "Connection",
    "LinkedEntity",
    "LinkRecordSource",
    "BulkEntityLoader",
    "SkuResolver",
    "LinkWriter",
]
