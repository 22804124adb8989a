"""Tag endpoints.

Routes
------
POST   /tags                              Create a tag (names are unique)
GET    /tags                              List (?name= substring, or ?entity_id= for one entity's tags)
GET    /tags/{id}                         Fetch a tag
PUT    /tags/{id}                         Update a tag
DELETE /tags/{id}                         Delete a tag
POST   /tags/{id}/entities                Tag a document, concept or page
GET    /tags/{id}/entities                Everything carrying the tag, grouped by kind
DELETE /tags/{id}/entities/{entity_id}    Remove the tag from an entity
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel, Field

from docgraph.config import settings
from docgraph.errors import NotFoundError, ValidationError
from docgraph.models import Tag
from docgraph.repositories import tags as repo

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: Optional[str] = None
    description: Optional[str] = None


class TagUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = None
    description: Optional[str] = None


class TagResponse(BaseModel):
    id: str
    name: str
    color: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TagListResponse(BaseModel):
    items: list[TagResponse]
    total: int
    limit: int
    offset: int


class TagEntityRequest(BaseModel):
    entity_id: str


class EntityRef(BaseModel):
    id: str
    label: str
    title: str


class TaggedEntitiesResponse(BaseModel):
    documents: list[EntityRef]
    concepts: list[EntityRef]
    pages: list[EntityRef]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tag_dict(tag: Tag) -> dict[str, Any]:
    return {
        "id": tag.id,
        "name": tag.name,
        "color": tag.color,
        "description": tag.description,
        "created_at": tag.created_at,
        "updated_at": tag.updated_at,
    }


def _not_found(tag_id: str) -> NotFoundError:
    return NotFoundError(f"Tag not found: {tag_id}", details={"id": tag_id})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=TagResponse, status_code=201)
async def create(body: TagCreate, request: Request) -> dict[str, Any]:
    tag = await repo.create_tag(request.app.state.graph, **body.model_dump())
    return _tag_dict(tag)


@router.get("", response_model=TagListResponse)
async def list_all(
    request: Request,
    name: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=settings.page_max_limit),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    graph = request.app.state.graph
    if entity_id is not None:
        tags = await repo.get_entity_tags(graph, entity_id)
        window = tags[offset : offset + limit]
        return {"items": [_tag_dict(t) for t in window], "total": len(tags), "limit": limit, "offset": offset}
    items, total = await repo.list_tags(graph, name=name, limit=limit, offset=offset)
    return {"items": [_tag_dict(t) for t in items], "total": total, "limit": limit, "offset": offset}


@router.get("/{tag_id}", response_model=TagResponse)
async def get_one(tag_id: str, request: Request) -> dict[str, Any]:
    tag = await repo.get_tag(request.app.state.graph, tag_id)
    if tag is None:
        raise _not_found(tag_id)
    return _tag_dict(tag)


@router.put("/{tag_id}", response_model=TagResponse)
async def update(tag_id: str, body: TagUpdate, request: Request) -> dict[str, Any]:
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise ValidationError("No fields provided to update.")
    tag = await repo.update_tag(request.app.state.graph, tag_id, **updates)
    if tag is None:
        raise _not_found(tag_id)
    return _tag_dict(tag)


@router.delete("/{tag_id}")
async def remove(tag_id: str, request: Request) -> Response:
    if not await repo.delete_tag(request.app.state.graph, tag_id):
        raise _not_found(tag_id)
    return Response(status_code=204)


@router.post("/{tag_id}/entities", status_code=201)
async def attach(tag_id: str, body: TagEntityRequest, request: Request) -> dict[str, str]:
    await repo.attach_tag(request.app.state.graph, body.entity_id, tag_id)
    return {"tag_id": tag_id, "entity_id": body.entity_id}


@router.get("/{tag_id}/entities", response_model=TaggedEntitiesResponse)
async def entities(tag_id: str, request: Request) -> dict[str, Any]:
    grouped = await repo.get_tagged_entities(request.app.state.graph, tag_id)
    return {
        kind: [
            {"id": n.id, "label": n.label, "title": n.get("title") or n.get("term", "")}
            for n in nodes
        ]
        for kind, nodes in grouped.items()
    }


@router.delete("/{tag_id}/entities/{entity_id}")
async def detach(tag_id: str, entity_id: str, request: Request) -> Response:
    await repo.detach_tag(request.app.state.graph, entity_id, tag_id)
    return Response(status_code=204)
