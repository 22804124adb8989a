"""Version endpoints.

Routes
------
POST   /versions                  Create a version
GET    /versions                  List (?is_public= &limit= &offset=)
GET    /versions/main             The current main version
GET    /versions/{id}             Fetch a version
PUT    /versions/{id}             Update a version
DELETE /versions/{id}             Delete a version
GET    /versions/{id}/navigation  Page tree of the version (?visible_only=)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel, Field

from docgraph.config import settings
from docgraph.engines.navigation import build_navigation
from docgraph.errors import NotFoundError, ValidationError
from docgraph.models import VERSION_PATTERN, Version
from docgraph.repositories import versions as repo

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class VersionCreate(BaseModel):
    version: str = Field(pattern=VERSION_PATTERN)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    is_public: bool
    is_main: bool


class VersionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    is_public: Optional[bool] = None
    is_main: Optional[bool] = None


class VersionResponse(BaseModel):
    id: str
    version: str
    name: str
    description: Optional[str] = None
    is_public: bool
    is_main: bool
    revision: int
    created_at: datetime
    updated_at: datetime


class VersionListResponse(BaseModel):
    items: list[VersionResponse]
    total: int
    limit: int
    offset: int


class NavigationItemResponse(BaseModel):
    id: str
    slug: str
    title: str
    order: int
    visible: bool
    document_id: Optional[str] = None
    children: list["NavigationItemResponse"] = []


NavigationItemResponse.model_rebuild()


class NavigationResponse(BaseModel):
    pages: list[NavigationItemResponse]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _version_dict(version: Version) -> dict[str, Any]:
    return {
        "id": version.id,
        "version": version.version,
        "name": version.name,
        "description": version.description,
        "is_public": version.is_public,
        "is_main": version.is_main,
        "revision": version.revision,
        "created_at": version.created_at,
        "updated_at": version.updated_at,
    }


def _not_found(version_id: str) -> NotFoundError:
    return NotFoundError(f"Version not found: {version_id}", details={"id": version_id})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=VersionResponse, status_code=201)
async def create(body: VersionCreate, request: Request) -> dict[str, Any]:
    """Create a version; ``is_main`` moves the main flag to it."""
    version = await repo.create_version(request.app.state.graph, **body.model_dump())
    return _version_dict(version)


@router.get("", response_model=VersionListResponse)
async def list_all(
    request: Request,
    is_public: Optional[bool] = None,
    limit: int = Query(default=20, ge=1, le=settings.page_max_limit),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    items, total = await repo.list_versions(
        request.app.state.graph, is_public=is_public, limit=limit, offset=offset
    )
    return {"items": [_version_dict(v) for v in items], "total": total, "limit": limit, "offset": offset}


@router.get("/main", response_model=VersionResponse)
async def main_version(request: Request) -> dict[str, Any]:
    version = await repo.get_main_version(request.app.state.graph)
    if version is None:
        raise NotFoundError("No main version is set")
    return _version_dict(version)


@router.get("/{version_id}", response_model=VersionResponse)
async def get_one(version_id: str, request: Request) -> dict[str, Any]:
    version = await repo.get_version(request.app.state.graph, version_id)
    if version is None:
        raise _not_found(version_id)
    return _version_dict(version)


@router.put("/{version_id}", response_model=VersionResponse)
async def update(version_id: str, body: VersionUpdate, request: Request) -> dict[str, Any]:
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise ValidationError("No fields provided to update.")
    version = await repo.update_version(request.app.state.graph, version_id, **updates)
    if version is None:
        raise _not_found(version_id)
    return _version_dict(version)


@router.delete("/{version_id}")
async def remove(version_id: str, request: Request) -> Response:
    if not await repo.delete_version(request.app.state.graph, version_id):
        raise _not_found(version_id)
    return Response(status_code=204)


@router.get("/{version_id}/navigation", response_model=NavigationResponse)
async def navigation(
    version_id: str, request: Request, visible_only: bool = False
) -> dict[str, Any]:
    """Return the ordered page tree of a version."""
    tree = await build_navigation(request.app.state.graph, version_id, visible_only=visible_only)
    if tree is None:
        raise _not_found(version_id)
    return tree.to_dict()
