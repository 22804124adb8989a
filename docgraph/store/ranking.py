"""Ranked-search collaborators.

The search aggregator only depends on the :class:`Ranker` protocol; the
default implementation ranks with SQLite FTS5 through the graph adapter.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from docgraph.db.search import search_documents
from docgraph.store.graph import GraphStore


class Ranker(Protocol):
    async def search(
        self,
        *,
        query: str,
        version_id: Optional[str] = None,
        tags: Optional[list[str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Return ``{"results": [...], "total": n}`` ordered by relevance."""
        ...


class SqliteRanker:
    """FTS5/bm25 ranking over the ``documents_fts`` index."""

    def __init__(self, graph: GraphStore) -> None:
        self.graph = graph

    async def search(
        self,
        *,
        query: str,
        version_id: Optional[str] = None,
        tags: Optional[list[str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        return await self.graph.run(
            search_documents, query, version_id, tags, limit, offset
        )
