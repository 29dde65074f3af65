"""
Health router.

Endpoints:
    GET /health    Service status plus a ``SELECT 1`` against the store
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from linkspine import __version__
from linkspine.api.deps import Conn

router = APIRouter(prefix="/health")


class HealthSchema(BaseModel):
    status: str
    service: str = "linkspine"
    version: str = __version__
    database: bool = False


@router.get("", response_model=HealthSchema)
def health(conn: Conn) -> HealthSchema:
    """Report whether the link store answers."""
    try:
        conn.execute("SELECT 1")
        conn.fetchone()
        database = True
    except Exception:
        database = False
    return HealthSchema(status="healthy" if database else "degraded", database=database)
