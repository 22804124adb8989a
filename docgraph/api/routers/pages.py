"""Page endpoints.

Routes
------
POST   /pages                   Create a page inside a version
GET    /pages                   List (?version_id= &visible= &limit= &offset=)
GET    /pages/{id}              Fetch a page
PUT    /pages/{id}              Update slug / title / order / visible
DELETE /pages/{id}              Delete a page (children become roots)
POST   /pages/{id}/documents    Display a document on the page
DELETE /pages/{id}/documents    Stop displaying the document
PUT    /pages/{id}/parent       Move the page under another parent (or to the root)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel, Field

from docgraph.config import settings
from docgraph.errors import NotFoundError, ValidationError
from docgraph.models import SLUG_PATTERN, Page
from docgraph.repositories import pages as repo

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class PageCreate(BaseModel):
    slug: str = Field(min_length=1, max_length=255, pattern=SLUG_PATTERN)
    title: str = Field(min_length=1, max_length=255)
    version_id: str
    parent_page_id: Optional[str] = None
    order: int = Field(default=0, ge=0)
    visible: bool = False


class PageUpdate(BaseModel):
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    order: Optional[int] = Field(default=None, ge=0)
    visible: Optional[bool] = None


class PageResponse(BaseModel):
    id: str
    slug: str
    title: str
    order: int
    visible: bool
    version_id: Optional[str] = None
    parent_page_id: Optional[str] = None
    document_id: Optional[str] = None
    revision: int
    created_at: datetime
    updated_at: datetime


class PageListResponse(BaseModel):
    items: list[PageResponse]
    total: int
    limit: int
    offset: int


class DisplayRequest(BaseModel):
    document_id: str


class MoveRequest(BaseModel):
    parent_page_id: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _page_dict(page: Page) -> dict[str, Any]:
    return {
        "id": page.id,
        "slug": page.slug,
        "title": page.title,
        "order": page.order,
        "visible": page.visible,
        "version_id": page.version_id,
        "parent_page_id": page.parent_page_id,
        "document_id": page.document_id,
        "revision": page.revision,
        "created_at": page.created_at,
        "updated_at": page.updated_at,
    }


def _not_found(page_id: str) -> NotFoundError:
    return NotFoundError(f"Page not found: {page_id}", details={"id": page_id})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=PageResponse, status_code=201)
async def create(body: PageCreate, request: Request) -> dict[str, Any]:
    page = await repo.create_page(request.app.state.graph, **body.model_dump())
    return _page_dict(page)


@router.get("", response_model=PageListResponse)
async def list_all(
    request: Request,
    version_id: Optional[str] = None,
    visible: Optional[bool] = None,
    limit: int = Query(default=20, ge=1, le=settings.page_max_limit),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    items, total = await repo.list_pages(
        request.app.state.graph, version_id=version_id, visible=visible, limit=limit, offset=offset
    )
    return {"items": [_page_dict(p) for p in items], "total": total, "limit": limit, "offset": offset}


@router.get("/{page_id}", response_model=PageResponse)
async def get_one(page_id: str, request: Request) -> dict[str, Any]:
    page = await repo.get_page(request.app.state.graph, page_id)
    if page is None:
        raise _not_found(page_id)
    return _page_dict(page)


@router.put("/{page_id}", response_model=PageResponse)
async def update(page_id: str, body: PageUpdate, request: Request) -> dict[str, Any]:
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise ValidationError("No fields provided to update.")
    page = await repo.update_page(request.app.state.graph, page_id, **updates)
    if page is None:
        raise _not_found(page_id)
    return _page_dict(page)


@router.delete("/{page_id}")
async def remove(page_id: str, request: Request) -> Response:
    if not await repo.delete_page(request.app.state.graph, page_id):
        raise _not_found(page_id)
    return Response(status_code=204)


@router.post("/{page_id}/documents", response_model=PageResponse, status_code=201)
async def display(page_id: str, body: DisplayRequest, request: Request) -> dict[str, Any]:
    """Link the page to a document, replacing the one it displayed before."""
    page = await repo.link_document(request.app.state.graph, page_id, body.document_id)
    return _page_dict(page)


@router.delete("/{page_id}/documents")
async def undisplay(page_id: str, request: Request) -> Response:
    await repo.unlink_document(request.app.state.graph, page_id)
    return Response(status_code=204)


@router.put("/{page_id}/parent", response_model=PageResponse)
async def move(page_id: str, body: MoveRequest, request: Request) -> dict[str, Any]:
    page = await repo.move_page(
        request.app.state.graph, page_id, body.parent_page_id, order=body.order
    )
    return _page_dict(page)
