"""
Links router: the query boundary for typed product links.

Endpoints:
    GET /products/{source_id}/links/{kind}   Resolved linked products
    PUT /products/{source_id}/links/{kind}   Replace the posted kind's links

The GET response is position-sorted, with a missing qty reported as 0.
Link-store failures degrade to an empty ``items`` list plus a warning:
a product page must not fail because its parts list could not be read.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Path, Query, Request
from pydantic import BaseModel, Field

from linkspine.api.deps import OpContext
from linkspine.api.schemas.common import SuccessResponse
from linkspine.api.utils import _dc, _handle_error

router = APIRouter(prefix="/products")


# ------------------------------------------------------------------ #
# Pydantic Schemas
# ------------------------------------------------------------------ #


class LinkedProductSchema(BaseModel):
    """Reference to a linked product."""

    id: int
    sku: str
    type_id: str
    name: str | None = None


class LinkItemSchema(BaseModel):
    """One linked product with its required quantity."""

    product: LinkedProductSchema
    qty: float
    position: int


class LinkItemsResponse(BaseModel):
    """Ordered linked products of one kind."""

    items: list[LinkItemSchema] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class PostedLinkSchema(BaseModel):
    """One row as posted by the admin form; rows without ``id`` are ignored."""

    id: int | None = Field(default=None, description="Linked product id")
    qty: float | None = Field(default=None, description="Required quantity")
    position: int | None = Field(default=None, description="Sort position")


class SaveLinksBody(BaseModel):
    """Complete set of links of one kind; omitting ``links`` changes nothing."""

    links: list[PostedLinkSchema] | None = None


# ------------------------------------------------------------------ #
# Endpoints
# ------------------------------------------------------------------ #


@router.get("/{source_id}/links/{kind}", response_model=LinkItemsResponse)
def get_links(
    request: Request,
    ctx: OpContext,
    source_id: int = Path(..., description="Product owning the links"),
    kind: str = Path(..., description="Link kind code, e.g. 'partlists'"),
    store_id: int | None = Query(None, description="Store/locale context"),
):
    """Linked products sorted by position, with qty and position."""
    from linkspine.ops.links import get_links as _get
    from linkspine.ops.requests import GetLinksRequest

    result = _get(
        ctx,
        GetLinksRequest(
            source_id=source_id,
            kind=kind,
            mode="position",
            qty_context="map",
            store_id=store_id,
        ),
    )
    if not result.success:
        return _handle_error(result, instance=str(request.url))

    return LinkItemsResponse(
        items=[item.to_query_dict() for item in result.data.items],
        warnings=result.warnings,
        metadata=result.metadata,
    )


@router.put("/{source_id}/links/{kind}", response_model=SuccessResponse[dict])
def save_links(
    request: Request,
    ctx: OpContext,
    body: SaveLinksBody,
    source_id: int = Path(..., description="Product owning the links"),
    kind: str = Path(..., description="Link kind code"),
):
    """Reconcile the posted rows with the persisted links of this kind.

    Links of other kinds are left as they are.
    """
    from linkspine.ops.links import save_links as _save
    from linkspine.ops.requests import SaveLinksRequest

    result = _save(
        ctx,
        SaveLinksRequest(
            source_id=source_id,
            links=None if body.links is None else [row.model_dump() for row in body.links],
            kind=kind,
        ),
    )
    if not result.success:
        return _handle_error(result, instance=str(request.url))

    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms, warnings=result.warnings)
