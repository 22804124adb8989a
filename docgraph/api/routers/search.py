"""Search endpoint.

Routes
------
GET /search?q=<query>&version_id=<id>&tags=a&tags=b&limit=20&offset=0
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from docgraph.config import settings
from docgraph.engines.search import search as run_search

router = APIRouter()


class SearchResultResponse(BaseModel):
    document_id: str
    page_id: Optional[str] = None
    title: str
    summary: Optional[str] = None
    relevance_score: float
    matched_fields: list[str]
    type: str


class SearchResponse(BaseModel):
    results: list[SearchResultResponse]
    total: int
    limit: int
    offset: int


@router.get("", response_model=SearchResponse)
async def search(
    request: Request,
    q: str = Query(min_length=1),
    version_id: Optional[str] = None,
    tags: Optional[list[str]] = Query(default=None),
    limit: int = Query(default=settings.search_default_limit, ge=1, le=settings.page_max_limit),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    """Rank documents against *q*.

    Args:
        q: Search query string.
        version_id: Only documents displayed by a page of this version.
        tags: Only documents carrying at least one of these tag names.
    """
    response = await run_search(
        request.app.state.ranker, q, version_id=version_id, tags=tags, limit=limit, offset=offset
    )
    return asdict(response)
