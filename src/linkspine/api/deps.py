"""
FastAPI dependencies: settings singleton and per-request objects.

Usage in routers::

    from linkspine.api.deps import OpContext

    @router.get("/products/{source_id}/links/{kind}")
    def get_links(source_id: int, kind: str, ctx: OpContext):
        ...
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request

from linkspine.core.settings import LinkSpineSettings, get_settings
from linkspine.ops.context import OperationContext
from linkspine.ops.sqlite_conn import SqliteConnection


def get_connection(
    settings: Annotated[LinkSpineSettings, Depends(get_settings)],
) -> Generator[SqliteConnection, None, None]:
    """One SQLite connection per request, closed afterwards."""
    conn = SqliteConnection(settings.resolved_database_path)
    try:
        yield conn
    finally:
        conn.close()


def get_operation_context(
    request: Request,
    conn: Annotated[SqliteConnection, Depends(get_connection)],
    settings: Annotated[LinkSpineSettings, Depends(get_settings)],
) -> OperationContext:
    """OperationContext with the configured filter policy and tax mode."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    return OperationContext.from_settings(conn, settings, request_id=request_id, caller="api")


Settings = Annotated[LinkSpineSettings, Depends(get_settings)]
Conn = Annotated[SqliteConnection, Depends(get_connection)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
