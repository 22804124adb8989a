"""Row types returned by the ``nodes`` and ``edges`` modules.

Labels and edge types are bare strings at this layer; the repositories turn
a :class:`Node` into the typed entity for its label.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Node:
    """A labelled vertex; ``revision`` increases by one on every write."""

    id: str
    label: str
    properties: dict[str, Any]
    revision: int
    created_at: datetime
    updated_at: datetime

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)


@dataclass
class Edge:
    """A directed, typed relation.  At most one per (type, source, target)."""

    edge_type: str
    source_id: str
    target_id: str
    properties: dict[str, Any]
    created_at: datetime


@dataclass
class NodePage:
    """One slice of a filtered listing; ``total`` ignores limit and offset."""

    items: list[Node] = field(default_factory=list)
    total: int = 0
