"""Keyword search over documents (SQLite FTS5).

This is the ranked-search capability the search aggregator consumes.  The
``documents_fts`` table mirrors each Document's title and summary through
triggers (see ``schema.sql``); the body text is written separately by
:func:`index_content` whenever a document's content changes.

Ranking is FTS5's built-in ``bm25``; ``relevance_score`` is its negation so
higher means more relevant.
"""

from __future__ import annotations

import json
import re
import sqlite3
from typing import Any, Optional


_TOKEN_RE = re.compile(r"\w{2,}")


# ---------------------------------------------------------------------------
# FTS5 helpers
# ---------------------------------------------------------------------------

def _tokens(text: str) -> list[str]:
    """Extract unique word tokens (≥2 chars), preserving order."""
    seen: set[str] = set()
    unique: list[str] = []
    for token in _TOKEN_RE.findall(text):
        if token.lower() not in seen:
            seen.add(token.lower())
            unique.append(token)
    return unique


def _sanitize_fts_query(text: str) -> Optional[str]:
    """Convert a natural-language string into a safe FTS5 query expression.

    FTS5 treats punctuation as query operators, so a raw sentence can raise
    ``OperationalError: fts5: syntax error``.  Each word token is wrapped in
    double quotes (a phrase literal) and the tokens are joined with spaces
    (implicit AND).  Returns ``None`` when no token survives.
    """
    tokens = _tokens(text)
    if not tokens:
        return None
    return " ".join(f'"{t}"' for t in tokens)


def _matched_fields(tokens: list[str], fields: dict[str, str]) -> list[str]:
    lowered = [t.lower() for t in tokens]
    matched = [
        name
        for name, value in fields.items()
        if value and any(t in value.lower() for t in lowered)
    ]
    # Stemmed matches ("indexes" vs "index") may not show up as substrings.
    return matched or ["content"]


def _scope_clause(
    version_id: Optional[str],
    tags: Optional[list[str]],
) -> tuple[str, list[Any]]:
    clause = ""
    params: list[Any] = []
    if version_id:
        clause += """
          AND documents_fts.id IN (
                SELECT d.target_id
                FROM   edges d
                JOIN   edges v ON v.source_id = d.source_id AND v.edge_type = 'IN_VERSION'
                WHERE  d.edge_type = 'DISPLAYS' AND v.target_id = ?
          )
        """
        params.append(version_id)
    if tags:
        placeholders = ",".join("?" for _ in tags)
        clause += f"""
          AND documents_fts.id IN (
                SELECT h.source_id
                FROM   edges h
                JOIN   nodes t ON t.id = h.target_id AND t.label = 'Tag'
                WHERE  h.edge_type = 'HAS_TAG'
                  AND  json_extract(t.properties, '$.name') IN ({placeholders})
          )
        """
        params.extend(tags)
    return clause, params


def _page_for(conn: sqlite3.Connection, document_id: str, version_id: Optional[str]) -> Optional[str]:
    """Return the first page displaying *document_id* (inside *version_id* if given)."""
    sql = """
        SELECT d.source_id
        FROM   edges d
        WHERE  d.edge_type = 'DISPLAYS' AND d.target_id = ?
    """
    params: list[Any] = [document_id]
    if version_id:
        sql += """
          AND EXISTS (SELECT 1 FROM edges v
                      WHERE v.edge_type = 'IN_VERSION'
                        AND v.source_id = d.source_id AND v.target_id = ?)
        """
        params.append(version_id)
    row = conn.execute(sql + " ORDER BY d.created_at LIMIT 1", params).fetchone()
    return row[0] if row else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def index_content(conn: sqlite3.Connection, document_id: str, text: str) -> None:
    """Store the body text of *document_id* in the FTS index."""
    with conn:
        conn.execute(
            "UPDATE documents_fts SET content_body = ? WHERE id = ?",
            (text, document_id),
        )


def search_documents(
    conn: sqlite3.Connection,
    query: str,
    version_id: Optional[str] = None,
    tags: Optional[list[str]] = None,
    limit: int = 20,
    offset: int = 0,
) -> dict[str, Any]:
    """Rank documents matching *query*, best first.

    Args:
        version_id: Only documents displayed by a page of this version.
        tags: Only documents carrying at least one tag with one of these names.

    Returns:
        ``{"results": [...], "total": n}`` where ``total`` counts every match
        before pagination.
    """
    fts_query = _sanitize_fts_query(query)
    if fts_query is None:
        return {"results": [], "total": 0}

    scope, scope_params = _scope_clause(version_id, tags)

    total = conn.execute(
        f"SELECT COUNT(*) FROM documents_fts WHERE documents_fts MATCH ? {scope}",  # noqa: S608
        [fts_query, *scope_params],
    ).fetchone()[0]

    rows = conn.execute(
        f"""
        SELECT documents_fts.id           AS id,
               documents_fts.title        AS fts_title,
               documents_fts.summary      AS fts_summary,
               documents_fts.content_body AS fts_content,
               bm25(documents_fts)        AS rank,
               n.properties               AS properties
        FROM   documents_fts
        JOIN   nodes n ON n.id = documents_fts.id
        WHERE  documents_fts MATCH ?
        {scope}
        ORDER  BY rank
        LIMIT  ? OFFSET ?
        """,  # noqa: S608
        [fts_query, *scope_params, limit, offset],
    ).fetchall()

    tokens = _tokens(query)
    results: list[dict[str, Any]] = []
    for row in rows:
        props = json.loads(row["properties"] or "{}")
        results.append(
            {
                "document_id": row["id"],
                "page_id": _page_for(conn, row["id"], version_id),
                "title": props.get("title", ""),
                "summary": props.get("summary"),
                "relevance_score": round(-row["rank"], 6),
                "matched_fields": _matched_fields(
                    tokens,
                    {
                        "title": row["fts_title"] or "",
                        "summary": row["fts_summary"] or "",
                        "content": row["fts_content"] or "",
                    },
                ),
                "type": props.get("type", "general"),
            }
        )
    return {"results": results, "total": total}
