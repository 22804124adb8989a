"""Search aggregator.

Normalises the request, forwards it to a :class:`~docgraph.store.ranking.Ranker`
and wraps the answer.  No ranking happens here: results keep the order the
ranker returned them in, and ``total`` is the ranker's count.
"""

from __future__ import annotations

from typing import Optional, Union

from docgraph.log import get_logger
from docgraph.models import SearchResponse, SearchResult
from docgraph.store.ranking import Ranker

logger = get_logger(__name__)


def normalize_tags(tags: Union[str, list[str], None]) -> Optional[list[str]]:
    if tags is None:
        return None
    if isinstance(tags, str):
        return [tags]
    return list(tags)


async def search(
    ranker: Ranker,
    query: str,
    version_id: Optional[str] = None,
    tags: Union[str, list[str], None] = None,
    limit: int = 20,
    offset: int = 0,
) -> SearchResponse:
    tag_list = normalize_tags(tags)
    raw = await ranker.search(
        query=query, version_id=version_id, tags=tag_list, limit=limit, offset=offset
    )
    results = [
        SearchResult(
            document_id=r["document_id"],
            page_id=r.get("page_id"),
            title=r.get("title", ""),
            summary=r.get("summary"),
            relevance_score=float(r.get("relevance_score", 0.0)),
            matched_fields=list(r.get("matched_fields", [])),
            type=r.get("type", "general"),
        )
        for r in raw.get("results", [])
    ]
    logger.debug("search completed", query=query, results=len(results), total=raw.get("total", 0))
    return SearchResponse(results=results, total=raw.get("total", 0), limit=limit, offset=offset)
