"""CRUD operations for the ``nodes`` table.

A node is a labelled record (``Document``, ``Concept``, ``Page``,
``Version``, ``Tag``) whose fields live in a JSON ``properties`` column.
Every write bumps ``revision``; ``update_node`` can additionally compare it
against the revision the caller read (optimistic concurrency).
"""

from __future__ import annotations

import json
import re
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from docgraph.db.models import Node, NodePage
from docgraph.errors import ConflictError


_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_CONTAINS = "__contains"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(value: datetime) -> str:
    """Fixed-width ISO-8601 so stored timestamps sort lexically."""
    return value.isoformat(timespec="microseconds")


def _row_to_node(row: sqlite3.Row) -> Node:
    return Node(
        id=row["id"],
        label=row["label"],
        properties=json.loads(row["properties"] or "{}"),
        revision=row["revision"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _filter_clause(filters: dict[str, Any]) -> tuple[str, list[Any]]:
    """Translate ``{"status": "draft", "name__contains": "ap"}`` into SQL.

    ``None`` values are skipped so callers can pass optional query params
    straight through.
    """
    clauses: list[str] = []
    params: list[Any] = []
    for key, value in filters.items():
        if value is None:
            continue
        contains = key.endswith(_CONTAINS)
        name = key[: -len(_CONTAINS)] if contains else key
        if not _FIELD_RE.match(name):
            raise ValueError(f"Invalid filter field {name!r}")
        if contains:
            clauses.append(
                f"LOWER(json_extract(properties, '$.{name}')) LIKE '%' || LOWER(?) || '%'"
            )
            params.append(value)
        else:
            clauses.append(f"json_extract(properties, '$.{name}') = ?")
            # json_extract() yields 1/0 for JSON booleans
            params.append(int(value) if isinstance(value, bool) else value)
    return "".join(f" AND {c}" for c in clauses), params


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_node(
    conn: sqlite3.Connection,
    label: str,
    properties: Optional[dict[str, Any]] = None,
    node_id: Optional[str] = None,
) -> Node:
    """Insert a new node and return it.

    Args:
        conn: Open DB connection.
        label: Node label, e.g. ``Document`` or ``Concept``.
        properties: Field values stored as a JSON blob.
        node_id: Explicit UUID override (auto-generated when omitted).

    Raises:
        sqlite3.IntegrityError: If ``node_id`` is already taken.
    """
    nid = node_id or str(uuid.uuid4())
    now = to_timestamp(utcnow())

    with conn:
        conn.execute(
            """
            INSERT INTO nodes (id, label, properties, revision, created_at, updated_at)
            VALUES (?, ?, ?, 1, ?, ?)
            """,
            (nid, label, json.dumps(properties or {}), now, now),
        )

    return get_node(conn, label, nid)  # type: ignore[return-value]


def get_node(
    conn: sqlite3.Connection,
    label: Optional[str],
    node_id: str,
) -> Optional[Node]:
    """Fetch a node by id.  ``label=None`` matches any label.

    Returns ``None`` if not found (or found under a different label).
    """
    if label is None:
        row = conn.execute("SELECT * FROM nodes WHERE id = ?", (node_id,)).fetchone()
    else:
        row = conn.execute(
            "SELECT * FROM nodes WHERE id = ? AND label = ?", (node_id, label)
        ).fetchone()
    return _row_to_node(row) if row else None


def update_node(
    conn: sqlite3.Connection,
    label: str,
    node_id: str,
    properties: dict[str, Any],
    expected_revision: Optional[int] = None,
) -> Optional[Node]:
    """Merge *properties* into a node and return the new state.

    ``updated_at`` always moves strictly forward and ``revision`` increases
    by one.  The write is a compare-and-swap on the revision that was read,
    so a concurrent writer between the read and the write is detected.

    Returns:
        The updated node, or ``None`` if it does not exist.

    Raises:
        ConflictError: If ``expected_revision`` is given and does not match,
            or another writer changed the node in the meantime.
    """
    current = get_node(conn, label, node_id)
    if current is None:
        return None

    if expected_revision is not None and current.revision != expected_revision:
        raise ConflictError(
            f"{label} {node_id!r} was modified concurrently",
            details={"expected_revision": expected_revision, "revision": current.revision},
        )

    merged = {**current.properties, **properties}
    now = utcnow()
    if now <= current.updated_at:
        now = current.updated_at + timedelta(microseconds=1)

    with conn:
        cursor = conn.execute(
            """
            UPDATE nodes
            SET    properties = ?, revision = revision + 1, updated_at = ?
            WHERE  id = ? AND label = ? AND revision = ?
            """,
            (json.dumps(merged), to_timestamp(now), node_id, label, current.revision),
        )

    if cursor.rowcount == 0:
        raise ConflictError(
            f"{label} {node_id!r} was modified concurrently",
            details={"revision": current.revision},
        )

    return get_node(conn, label, node_id)


def delete_node(conn: sqlite3.Connection, label: str, node_id: str) -> bool:
    """Delete a node (and its edges via CASCADE).

    Returns:
        ``True`` if a node was removed, ``False`` if it did not exist.
    """
    with conn:
        cursor = conn.execute(
            "DELETE FROM nodes WHERE id = ? AND label = ?", (node_id, label)
        )
    return cursor.rowcount > 0


def list_nodes(
    conn: sqlite3.Connection,
    label: str,
    filters: Optional[dict[str, Any]] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> NodePage:
    """Return one page of nodes with *label*, newest first.

    Args:
        filters: Exact-match property filters; a key suffixed with
            ``__contains`` does a case-insensitive substring match instead.
        limit: Page size (``None`` means everything).
        offset: Number of matching rows to skip.
    """
    where, params = _filter_clause(filters or {})

    total = conn.execute(
        f"SELECT COUNT(*) FROM nodes WHERE label = ?{where}",  # noqa: S608
        [label, *params],
    ).fetchone()[0]

    rows = conn.execute(
        f"""
        SELECT * FROM nodes
        WHERE  label = ?{where}
        ORDER  BY created_at DESC, rowid DESC
        LIMIT  ? OFFSET ?
        """,  # noqa: S608
        [label, *params, -1 if limit is None else limit, offset],
    ).fetchall()

    return NodePage(items=[_row_to_node(r) for r in rows], total=total)
