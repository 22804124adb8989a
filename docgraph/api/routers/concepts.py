"""Glossary concept endpoints.

Routes
------
POST   /concepts                              Create a concept
GET    /concepts                              List (?lang= &term= &limit= &offset=)
GET    /concepts/{id}                         Fetch a concept
PUT    /concepts/{id}                         Update term or description
DELETE /concepts/{id}                         Delete a concept (relations cascade)
POST   /concepts/{id}/supertypes              Link as subtype of {parent_id}
GET    /concepts/{id}/supertypes              Parents in the hierarchy
GET    /concepts/{id}/subtypes                Children in the hierarchy
DELETE /concepts/{id}/supertypes/{parent_id}  Remove a hierarchy link
POST   /concepts/{id}/wholes                  Link as part of {whole_id}
GET    /concepts/{id}/wholes                  Wholes this concept is part of
GET    /concepts/{id}/parts                   Parts of this concept
DELETE /concepts/{id}/wholes/{whole_id}       Remove a part-of link
POST   /concepts/{id}/synonyms                Link as synonym of {synonym_id}
GET    /concepts/{id}/synonyms                Synonyms (either direction)
DELETE /concepts/{id}/synonyms/{synonym_id}   Remove a synonym link
GET    /concepts/{id}/relations               Relationship counts
GET    /concepts/{id}/documents               Impact analysis: documents using it
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from docgraph.config import settings
from docgraph.engines import impact, relations
from docgraph.errors import NotFoundError, ValidationError
from docgraph.models import LANG_PATTERN, Concept, DocumentStatus, DocumentType
from docgraph.repositories import concepts as repo

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class ConceptCreate(BaseModel):
    term: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    lang: str = Field(pattern=LANG_PATTERN)


class ConceptUpdate(BaseModel):
    # A concept keeps the language it was created with; synonyms depend on it.
    model_config = ConfigDict(extra="forbid")

    term: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)


class ConceptResponse(BaseModel):
    id: str
    term: str
    description: str
    lang: str
    revision: int
    created_at: datetime
    updated_at: datetime


class ConceptListResponse(BaseModel):
    items: list[ConceptResponse]
    total: int
    limit: int
    offset: int


class SupertypeRequest(BaseModel):
    parent_id: str


class WholeRequest(BaseModel):
    whole_id: str


class SynonymRequest(BaseModel):
    synonym_id: str


class DocumentSummaryResponse(BaseModel):
    id: str
    title: str
    type: DocumentType
    status: DocumentStatus
    lang: str


class ImpactResponse(BaseModel):
    items: list[DocumentSummaryResponse]
    total: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _concept_dict(concept: Concept) -> dict[str, Any]:
    return {
        "id": concept.id,
        "term": concept.term,
        "description": concept.description,
        "lang": concept.lang,
        "revision": concept.revision,
        "created_at": concept.created_at,
        "updated_at": concept.updated_at,
    }


def _not_found(concept_id: str) -> NotFoundError:
    return NotFoundError(f"Concept not found: {concept_id}", details={"id": concept_id})


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.post("", response_model=ConceptResponse, status_code=201)
async def create(body: ConceptCreate, request: Request) -> dict[str, Any]:
    concept = await repo.create_concept(
        request.app.state.graph, term=body.term, description=body.description, lang=body.lang
    )
    return _concept_dict(concept)


@router.get("", response_model=ConceptListResponse)
async def list_all(
    request: Request,
    lang: Optional[str] = Query(default=None, pattern=LANG_PATTERN),
    term: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=settings.page_max_limit),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    items, total = await repo.list_concepts(
        request.app.state.graph, lang=lang, term=term, limit=limit, offset=offset
    )
    return {"items": [_concept_dict(c) for c in items], "total": total, "limit": limit, "offset": offset}


@router.get("/{concept_id}", response_model=ConceptResponse)
async def get_one(concept_id: str, request: Request) -> dict[str, Any]:
    concept = await repo.get_concept(request.app.state.graph, concept_id)
    if concept is None:
        raise _not_found(concept_id)
    return _concept_dict(concept)


@router.put("/{concept_id}", response_model=ConceptResponse)
async def update(concept_id: str, body: ConceptUpdate, request: Request) -> dict[str, Any]:
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise ValidationError("No fields provided to update.")
    concept = await repo.update_concept(request.app.state.graph, concept_id, **updates)
    if concept is None:
        raise _not_found(concept_id)
    return _concept_dict(concept)


@router.delete("/{concept_id}")
async def remove(concept_id: str, request: Request) -> Response:
    if not await repo.delete_concept(request.app.state.graph, concept_id):
        raise _not_found(concept_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------

@router.post("/{concept_id}/supertypes", status_code=201)
async def add_supertype(concept_id: str, body: SupertypeRequest, request: Request) -> dict[str, str]:
    await relations.link_subtype_of(request.app.state.graph, concept_id, body.parent_id)
    return {"child_id": concept_id, "parent_id": body.parent_id}


@router.get("/{concept_id}/supertypes", response_model=list[ConceptResponse])
async def supertypes(concept_id: str, request: Request) -> list[dict[str, Any]]:
    return [_concept_dict(c) for c in await relations.get_supertypes(request.app.state.graph, concept_id)]


@router.get("/{concept_id}/subtypes", response_model=list[ConceptResponse])
async def subtypes(concept_id: str, request: Request) -> list[dict[str, Any]]:
    return [_concept_dict(c) for c in await relations.get_subtypes(request.app.state.graph, concept_id)]


@router.delete("/{concept_id}/supertypes/{parent_id}")
async def remove_supertype(concept_id: str, parent_id: str, request: Request) -> Response:
    await relations.unlink_subtype_of(request.app.state.graph, concept_id, parent_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Part-whole
# ---------------------------------------------------------------------------

@router.post("/{concept_id}/wholes", status_code=201)
async def add_whole(concept_id: str, body: WholeRequest, request: Request) -> dict[str, str]:
    await relations.link_part_of(request.app.state.graph, concept_id, body.whole_id)
    return {"part_id": concept_id, "whole_id": body.whole_id}


@router.get("/{concept_id}/wholes", response_model=list[ConceptResponse])
async def wholes(concept_id: str, request: Request) -> list[dict[str, Any]]:
    return [_concept_dict(c) for c in await relations.get_whole_of(request.app.state.graph, concept_id)]


@router.get("/{concept_id}/parts", response_model=list[ConceptResponse])
async def parts(concept_id: str, request: Request) -> list[dict[str, Any]]:
    return [_concept_dict(c) for c in await relations.get_parts(request.app.state.graph, concept_id)]


@router.delete("/{concept_id}/wholes/{whole_id}")
async def remove_whole(concept_id: str, whole_id: str, request: Request) -> Response:
    await relations.unlink_part_of(request.app.state.graph, concept_id, whole_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Synonyms
# ---------------------------------------------------------------------------

@router.post("/{concept_id}/synonyms", status_code=201)
async def add_synonym(concept_id: str, body: SynonymRequest, request: Request) -> dict[str, str]:
    await relations.link_synonym_of(request.app.state.graph, concept_id, body.synonym_id)
    return {"concept_id": concept_id, "synonym_id": body.synonym_id}


@router.get("/{concept_id}/synonyms", response_model=list[ConceptResponse])
async def synonyms(concept_id: str, request: Request) -> list[dict[str, Any]]:
    return [_concept_dict(c) for c in await relations.get_synonyms(request.app.state.graph, concept_id)]


@router.delete("/{concept_id}/synonyms/{synonym_id}")
async def remove_synonym(concept_id: str, synonym_id: str, request: Request) -> Response:
    await relations.unlink_synonym_of(request.app.state.graph, concept_id, synonym_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

@router.get("/{concept_id}/relations", response_model=dict[str, int])
async def relation_counts(concept_id: str, request: Request) -> dict[str, int]:
    return await relations.get_relation_counts(request.app.state.graph, concept_id)


@router.get("/{concept_id}/documents", response_model=ImpactResponse)
async def documents(concept_id: str, request: Request) -> dict[str, Any]:
    """List every document that uses this concept."""
    report = await impact.get_impact(request.app.state.graph, concept_id)
    if report is None:
        raise _not_found(concept_id)
    return {
        "items": [
            {"id": d.id, "title": d.title, "type": d.type, "status": d.status, "lang": d.lang}
            for d in report.items
        ],
        "total": report.total,
    }
