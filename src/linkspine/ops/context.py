"""
Request-scoped context for operations.

Every operation function takes an :class:`OperationContext` first. It
carries the connection, who is calling, and the display settings that
shape read paths (filter policy, tax display mode).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from linkspine.core.protocols import Connection
from linkspine.domain.catalog.enums import TaxDisplayMode
from linkspine.domain.catalog.models import FilterPolicy


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        conn: Database connection satisfying :class:`linkspine.core.protocols.Connection`.
        request_id: Unique id for this invocation (auto-generated).
        caller: ``"api"``, ``"cli"`` or ``"sdk"``.
        user: Optional authenticated user.
        dry_run: Write operations compute their result without persisting.
        policy: Default filter policy for read paths.
        tax_display_mode: How amounts are shown.
        metadata: Key/value pairs forwarded to logging.
    """

    conn: Connection
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    user: str | None = None
    dry_run: bool = False
    policy: FilterPolicy = field(default_factory=FilterPolicy)
    tax_display_mode: TaxDisplayMode = TaxDisplayMode.EXCLUDING_TAX
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, conn: Connection, settings: Any, **kwargs: Any) -> OperationContext:
        """Context whose policy and tax mode come from ``LinkSpineSettings``."""
        return cls(
            conn=conn,
            policy=FilterPolicy.from_settings(settings),
            tax_display_mode=TaxDisplayMode(settings.tax_display_mode),
            **kwargs,
        )
