"""Document endpoints.

Routes
------
POST   /documents                                Create a document (starts as draft)
GET    /documents                                List (?status= &type= &lang= &limit= &offset=)
GET    /documents/{id}                           Fetch metadata and content
PUT    /documents/{id}                           Update title / summary / content / status
DELETE /documents/{id}                           Delete node and content
POST   /documents/{id}/links                     Link to another document
GET    /documents/{id}/links                     Documents this one links to
GET    /documents/{id}/backlinks                 Documents linking here
DELETE /documents/{id}/links/{target_id}         Remove a link
POST   /documents/{id}/working-copy              Clone as a working copy
PUT    /documents/{id}/original                  Mark as working copy of another document
GET    /documents/{id}/original                  The original of a working copy
DELETE /documents/{id}/working-copy/{original_id}  Remove the working-copy relation
GET    /documents/{id}/working-copies            Working copies of a document
POST   /documents/{id}/concepts                  Record concept usage
GET    /documents/{id}/concepts                  Concepts used by a document
DELETE /documents/{id}/concepts/{concept_id}     Remove concept usage
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel, Field

from docgraph.api.routers.concepts import ConceptResponse, _concept_dict
from docgraph.config import settings
from docgraph.errors import NotFoundError, ValidationError
from docgraph.models import LANG_PATTERN, Document, DocumentStatus, DocumentType
from docgraph.repositories import documents as repo

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class DocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    type: DocumentType
    content: str = Field(min_length=1)
    lang: str = Field(pattern=LANG_PATTERN)
    summary: Optional[str] = None


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    summary: Optional[str] = None
    status: Optional[DocumentStatus] = None
    expected_revision: Optional[int] = None


class DocumentResponse(BaseModel):
    id: str
    type: DocumentType
    status: DocumentStatus
    title: str
    lang: str
    summary: Optional[str] = None
    content: Optional[str] = None
    revision: int
    created_at: datetime
    updated_at: datetime


class DocumentListResponse(BaseModel):
    items: list[DocumentResponse]
    total: int
    limit: int
    offset: int


class LinkRequest(BaseModel):
    target_id: str


class OriginalRequest(BaseModel):
    original_id: str


class ConceptUsageRequest(BaseModel):
    concept_id: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _document_dict(doc: Document) -> dict[str, Any]:
    return {
        "id": doc.id,
        "type": doc.type,
        "status": doc.status,
        "title": doc.title,
        "lang": doc.lang,
        "summary": doc.summary,
        "content": doc.content,
        "revision": doc.revision,
        "created_at": doc.created_at,
        "updated_at": doc.updated_at,
    }


def _not_found(document_id: str) -> NotFoundError:
    return NotFoundError(f"Document not found: {document_id}", details={"id": document_id})


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.post("", response_model=DocumentResponse, status_code=201)
async def create(body: DocumentCreate, request: Request) -> dict[str, Any]:
    """Create a document; the body goes to the object store."""
    doc = await repo.create_document(
        request.app.state.graph,
        request.app.state.objects,
        title=body.title,
        type=body.type,
        content=body.content,
        lang=body.lang,
        summary=body.summary,
    )
    return _document_dict(doc)


@router.get("", response_model=DocumentListResponse)
async def list_all(
    request: Request,
    status: Optional[DocumentStatus] = None,
    type: Optional[DocumentType] = None,
    lang: Optional[str] = Query(default=None, pattern=LANG_PATTERN),
    limit: int = Query(default=20, ge=1, le=settings.page_max_limit),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    items, total = await repo.list_documents(
        request.app.state.graph, status=status, type=type, lang=lang, limit=limit, offset=offset
    )
    return {
        "items": [_document_dict(d) for d in items],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_one(document_id: str, request: Request) -> dict[str, Any]:
    doc = await repo.get_document(request.app.state.graph, request.app.state.objects, document_id)
    if doc is None:
        raise _not_found(document_id)
    return _document_dict(doc)


@router.put("/{document_id}", response_model=DocumentResponse)
async def update(document_id: str, body: DocumentUpdate, request: Request) -> dict[str, Any]:
    """Update fields; a status change must follow the review workflow."""
    updates = body.model_dump(exclude_none=True)
    updates.pop("expected_revision", None)
    if not updates:
        raise ValidationError("No fields provided to update.")
    doc = await repo.update_document(
        request.app.state.graph,
        request.app.state.objects,
        document_id,
        title=body.title,
        content=body.content,
        summary=body.summary,
        status=body.status,
        expected_revision=body.expected_revision,
    )
    if doc is None:
        raise _not_found(document_id)
    return _document_dict(doc)


@router.delete("/{document_id}")
async def remove(document_id: str, request: Request) -> Response:
    """Delete a document, its content and every edge touching it."""
    if not await repo.delete_document(
        request.app.state.graph, request.app.state.objects, document_id
    ):
        raise _not_found(document_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------

@router.post("/{document_id}/links", status_code=201)
async def link(document_id: str, body: LinkRequest, request: Request) -> dict[str, str]:
    await repo.link_documents(request.app.state.graph, document_id, body.target_id)
    return {"source_id": document_id, "target_id": body.target_id}


@router.get("/{document_id}/links", response_model=list[DocumentResponse])
async def links(document_id: str, request: Request) -> list[dict[str, Any]]:
    docs = await repo.get_linked_documents(request.app.state.graph, document_id)
    return [_document_dict(d) for d in docs]


@router.get("/{document_id}/backlinks", response_model=list[DocumentResponse])
async def backlinks(document_id: str, request: Request) -> list[dict[str, Any]]:
    docs = await repo.get_linking_documents(request.app.state.graph, document_id)
    return [_document_dict(d) for d in docs]


@router.delete("/{document_id}/links/{target_id}")
async def unlink(document_id: str, target_id: str, request: Request) -> Response:
    await repo.unlink_documents(request.app.state.graph, document_id, target_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Working copies
# ---------------------------------------------------------------------------

@router.post("/{document_id}/working-copy", response_model=DocumentResponse, status_code=201)
async def working_copy(document_id: str, request: Request) -> dict[str, Any]:
    copy = await repo.create_working_copy(
        request.app.state.graph, request.app.state.objects, document_id
    )
    return _document_dict(copy)


@router.put("/{document_id}/original", status_code=201)
async def set_original(document_id: str, body: OriginalRequest, request: Request) -> dict[str, str]:
    await repo.link_working_copy(request.app.state.graph, document_id, body.original_id)
    return {"document_id": document_id, "original_id": body.original_id}


@router.get("/{document_id}/original", response_model=Optional[DocumentResponse])
async def original(document_id: str, request: Request) -> Optional[dict[str, Any]]:
    doc = await repo.get_original_document(request.app.state.graph, document_id)
    return _document_dict(doc) if doc else None


@router.delete("/{document_id}/working-copy/{original_id}")
async def unset_original(document_id: str, original_id: str, request: Request) -> Response:
    await repo.unlink_working_copy(request.app.state.graph, document_id, original_id)
    return Response(status_code=204)


@router.get("/{document_id}/working-copies", response_model=list[DocumentResponse])
async def working_copies(document_id: str, request: Request) -> list[dict[str, Any]]:
    docs = await repo.get_working_copies(request.app.state.graph, document_id)
    return [_document_dict(d) for d in docs]


# ---------------------------------------------------------------------------
# Concept usage
# ---------------------------------------------------------------------------

@router.post("/{document_id}/concepts", status_code=201)
async def use_concept(
    document_id: str, body: ConceptUsageRequest, request: Request
) -> dict[str, str]:
    await repo.link_concept(request.app.state.graph, document_id, body.concept_id)
    return {"document_id": document_id, "concept_id": body.concept_id}


@router.get("/{document_id}/concepts", response_model=list[ConceptResponse])
async def concepts(document_id: str, request: Request) -> list[dict[str, Any]]:
    return [
        _concept_dict(c)
        for c in await repo.get_document_concepts(request.app.state.graph, document_id)
    ]


@router.delete("/{document_id}/concepts/{concept_id}")
async def drop_concept(document_id: str, concept_id: str, request: Request) -> Response:
    await repo.unlink_concept(request.app.state.graph, document_id, concept_id)
    return Response(status_code=204)
