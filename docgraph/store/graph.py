"""Async graph store adapter.

The engines and repositories never touch SQLite directly: they ``await``
methods on :class:`GraphStore`, which runs the synchronous functions from
``docgraph.db`` on the default thread pool (``loop.run_in_executor``) so the
event loop is never blocked for the duration of a query.

A single connection is shared by every request.  The adapter owns it and
serialises access with a lock; callers never hold it across two calls.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from functools import partial
from typing import Any, Callable, Optional, TypeVar

from docgraph.db import edges as edges_db
from docgraph.db import nodes as nodes_db
from docgraph.db.models import Edge, Node, NodePage
from docgraph.errors import ConflictError

T = TypeVar("T")


class GraphStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    def _call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self._lock:
            try:
                return fn(self._conn, *args, **kwargs)
            except sqlite3.IntegrityError as exc:
                raise ConflictError(f"Store constraint violated: {exc}") from exc

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn(conn, *args, **kwargs)`` on a worker thread and await it."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self._call, fn, *args, **kwargs))

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    async def create_node(
        self,
        label: str,
        fields: dict[str, Any],
        node_id: Optional[str] = None,
    ) -> Node:
        return await self.run(nodes_db.create_node, label, fields, node_id)

    async def get_node(self, label: Optional[str], node_id: str) -> Optional[Node]:
        return await self.run(nodes_db.get_node, label, node_id)

    async def update_node(
        self,
        label: str,
        node_id: str,
        fields: dict[str, Any],
        expected_revision: Optional[int] = None,
    ) -> Optional[Node]:
        return await self.run(
            nodes_db.update_node, label, node_id, fields, expected_revision
        )

    async def delete_node(self, label: str, node_id: str) -> bool:
        return await self.run(nodes_db.delete_node, label, node_id)

    async def list_nodes(
        self,
        label: str,
        filters: Optional[dict[str, Any]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> NodePage:
        return await self.run(nodes_db.list_nodes, label, filters, limit, offset)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    async def create_edge(
        self,
        edge_type: str,
        from_id: str,
        to_id: str,
        props: Optional[dict[str, Any]] = None,
    ) -> bool:
        return await self.run(edges_db.create_edge, edge_type, from_id, to_id, props)

    async def delete_edge(self, edge_type: str, from_id: str, to_id: str) -> bool:
        return await self.run(edges_db.delete_edge, edge_type, from_id, to_id)

    async def delete_edges_from(self, edge_type: str, from_id: str) -> int:
        return await self.run(edges_db.delete_edges_from, edge_type, from_id)

    async def edge_exists(self, edge_type: str, from_id: str, to_id: str) -> bool:
        return await self.run(edges_db.edge_exists, edge_type, from_id, to_id)

    async def traverse(self, edge_type: str, from_id: str, direction: str = "out") -> list[Node]:
        return await self.run(edges_db.traverse, edge_type, from_id, direction)

    async def get_edges(self, node_id: str, edge_types: Optional[list[str]] = None) -> list[Edge]:
        return await self.run(edges_db.get_edges, node_id, edge_types)

    async def reachability(
        self, edge_type: str, start_id: str, target_id: str, max_depth: int
    ) -> tuple[bool, bool]:
        return await self.run(
            edges_db.reachability, edge_type, start_id, target_id, max_depth
        )

    def close(self) -> None:
        with self._lock:
            self._conn.close()
