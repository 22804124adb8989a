"""Operations on the ``edges`` table.

Edges are typed and directed: ``(edge_type, source_id, target_id)`` is the
primary key, so creating the same edge twice is a no-op.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, Iterable, Optional

from docgraph.db.models import Edge, Node
from docgraph.db.nodes import _row_to_node, to_timestamp, utcnow


DIRECTIONS = ("out", "in", "both")


def _row_to_edge(row: sqlite3.Row) -> Edge:
    return Edge(
        edge_type=row["edge_type"],
        source_id=row["source_id"],
        target_id=row["target_id"],
        properties=json.loads(row["properties"] or "{}"),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_edge(
    conn: sqlite3.Connection,
    edge_type: str,
    source_id: str,
    target_id: str,
    properties: Optional[dict[str, Any]] = None,
) -> bool:
    """Create a directed edge from *source* to *target*.

    Uses ``INSERT OR IGNORE`` so calling it twice with the same triple is safe.

    Returns:
        ``True`` if the edge exists afterwards, ``False`` if either endpoint
        node is missing.
    """
    found = conn.execute(
        "SELECT COUNT(*) FROM nodes WHERE id IN (?, ?)", (source_id, target_id)
    ).fetchone()[0]
    if found < (1 if source_id == target_id else 2):
        return False

    with conn:
        conn.execute(
            """
            INSERT OR IGNORE INTO edges (edge_type, source_id, target_id, properties, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (edge_type, source_id, target_id, json.dumps(properties or {}), to_timestamp(utcnow())),
        )
    return True


def delete_edge(
    conn: sqlite3.Connection,
    edge_type: str,
    source_id: str,
    target_id: str,
) -> bool:
    """Delete one edge.  Returns ``False`` if it did not exist."""
    with conn:
        cursor = conn.execute(
            "DELETE FROM edges WHERE edge_type = ? AND source_id = ? AND target_id = ?",
            (edge_type, source_id, target_id),
        )
    return cursor.rowcount > 0


def delete_edges_from(conn: sqlite3.Connection, edge_type: str, source_id: str) -> int:
    """Delete every *edge_type* edge leaving *source_id*; returns the count."""
    with conn:
        cursor = conn.execute(
            "DELETE FROM edges WHERE edge_type = ? AND source_id = ?",
            (edge_type, source_id),
        )
    return cursor.rowcount


def edge_exists(
    conn: sqlite3.Connection,
    edge_type: str,
    source_id: str,
    target_id: str,
) -> bool:
    row = conn.execute(
        "SELECT 1 FROM edges WHERE edge_type = ? AND source_id = ? AND target_id = ?",
        (edge_type, source_id, target_id),
    ).fetchone()
    return row is not None


def traverse(
    conn: sqlite3.Connection,
    edge_type: str,
    node_id: str,
    direction: str = "out",
) -> list[Node]:
    """Return the nodes one *edge_type* hop away from *node_id*.

    Args:
        direction: ``out`` follows edges leaving the node, ``in`` follows
            edges arriving at it, ``both`` does both (each neighbour once).

    Results come back in edge-creation order.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")

    parts: list[str] = []
    params: list[str] = []
    if direction in ("out", "both"):
        parts.append(
            """
            SELECT n.*, e.created_at AS edge_created_at, e.rowid AS edge_seq
            FROM   edges e JOIN nodes n ON n.id = e.target_id
            WHERE  e.edge_type = ? AND e.source_id = ?
            """
        )
        params.extend((edge_type, node_id))
    if direction in ("in", "both"):
        parts.append(
            """
            SELECT n.*, e.created_at AS edge_created_at, e.rowid AS edge_seq
            FROM   edges e JOIN nodes n ON n.id = e.source_id
            WHERE  e.edge_type = ? AND e.target_id = ?
            """
        )
        params.extend((edge_type, node_id))

    rows = conn.execute(
        " UNION ALL ".join(parts) + " ORDER BY edge_created_at, edge_seq", params
    ).fetchall()

    seen: set[str] = set()
    nodes: list[Node] = []
    for row in rows:
        if row["id"] in seen:
            continue
        seen.add(row["id"])
        nodes.append(_row_to_node(row))
    return nodes


def get_edges(
    conn: sqlite3.Connection,
    node_id: str,
    edge_types: Optional[Iterable[str]] = None,
) -> list[Edge]:
    """Return all edges where *node_id* is the source **or** the target."""
    sql = """
        SELECT edge_type, source_id, target_id, properties, created_at
        FROM   edges
        WHERE  (source_id = ? OR target_id = ?)
    """
    params: list[str] = [node_id, node_id]
    types = list(edge_types or [])
    if types:
        sql += f" AND edge_type IN ({','.join('?' for _ in types)})"
        params.extend(types)
    rows = conn.execute(sql + " ORDER BY created_at", params).fetchall()
    return [_row_to_edge(r) for r in rows]


def reachability(
    conn: sqlite3.Connection,
    edge_type: str,
    start_id: str,
    target_id: str,
    max_depth: int,
) -> tuple[bool, bool]:
    """Breadth-first walk over outgoing *edge_type* edges from *start_id*.

    The walk is a recursive CTE bounded at *max_depth* hops.

    Returns:
        ``(found, truncated)``: whether *target_id* was reached, and whether
        some node at the depth cap still had unexplored outgoing edges.
    """
    row = conn.execute(
        """
        WITH RECURSIVE walk(id, depth) AS (
            SELECT ?, 0
            UNION
            SELECT e.target_id, w.depth + 1
            FROM   edges e
            JOIN   walk w ON e.source_id = w.id
            WHERE  e.edge_type = ? AND w.depth < ?
        )
        SELECT
            EXISTS (SELECT 1 FROM walk WHERE id = ?) AS found,
            EXISTS (
                SELECT 1 FROM walk w
                JOIN   edges e ON e.source_id = w.id AND e.edge_type = ?
                WHERE  w.depth = ?
            ) AS truncated
        """,
        (start_id, edge_type, max_depth, target_id, edge_type, max_depth),
    ).fetchone()
    return bool(row["found"]), bool(row["truncated"])
