"""Navigation tree assembly for one version.

All pages ``IN_VERSION`` of the version are fetched once, grouped by their
``CHILD_OF`` parent, then attached under their parents with an explicit
stack rather than recursion.  A page whose parent is missing or lives in a
different version is a root.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

from docgraph.db.models import Node
from docgraph.errors import ValidationError
from docgraph.log import get_logger
from docgraph.models import (
    CHILD_OF,
    DISPLAYS,
    DOCUMENT,
    IN_VERSION,
    PAGE,
    VERSION,
    NavigationItem,
    NavigationTree,
)
from docgraph.store.graph import GraphStore

logger = get_logger(__name__)


def _sort_siblings(nodes: list[Node]) -> list[Node]:
    # Ascending order; equal orders put the most recently created page first.
    # *nodes* arrive in creation order, which breaks same-timestamp ties.
    ranked = sorted(
        enumerate(nodes),
        key=lambda p: (int(p[1].get("order", 0)), -p[1].created_at.timestamp(), -p[0]),
    )
    return [n for _, n in ranked]


def _item(node: Node, document_id: Optional[str]) -> NavigationItem:
    return NavigationItem(
        id=node.id,
        slug=node.get("slug", ""),
        title=node.get("title", ""),
        order=int(node.get("order", 0)),
        visible=bool(node.get("visible", False)),
        document_id=document_id,
    )


def _prune_hidden(items: list[NavigationItem]) -> list[NavigationItem]:
    kept = []
    for item in items:
        if item.visible:
            item.children = _prune_hidden(item.children)
            kept.append(item)
    return kept


async def build_navigation(
    graph: GraphStore,
    version_id: str,
    visible_only: bool = False,
) -> Optional[NavigationTree]:
    """Assemble the ordered page forest of *version_id*.

    Args:
        visible_only: Drop invisible pages together with everything below them.

    Returns:
        The tree, or ``None`` if the version does not exist.

    Raises:
        ValidationError: If the ``CHILD_OF`` edges among the version's pages
            form a cycle.
    """
    if await graph.get_node(VERSION, version_id) is None:
        return None

    pages = [n for n in await graph.traverse(IN_VERSION, version_id, "in") if n.label == PAGE]
    by_id = {p.id: p for p in pages}

    children: dict[Optional[str], list[Node]] = defaultdict(list)
    documents: dict[str, Optional[str]] = {}
    for page in pages:
        parents = await graph.traverse(CHILD_OF, page.id, "out")
        parent_id = parents[0].id if parents and parents[0].id in by_id else None
        children[parent_id].append(page)
        displayed = [n for n in await graph.traverse(DISPLAYS, page.id, "out") if n.label == DOCUMENT]
        documents[page.id] = displayed[0].id if displayed else None

    roots = [_item(n, documents[n.id]) for n in _sort_siblings(children[None])]
    visited: set[str] = set()
    stack = list(roots)
    while stack:
        item = stack.pop()
        if item.id in visited:
            raise ValidationError(
                "cyclic page hierarchy", details={"version_id": version_id, "page_id": item.id}
            )
        visited.add(item.id)
        item.children = [_item(n, documents[n.id]) for n in _sort_siblings(children[item.id])]
        stack.extend(item.children)

    unplaced = sorted(set(by_id) - visited)
    if unplaced:
        raise ValidationError(
            "cyclic page hierarchy", details={"version_id": version_id, "page_ids": unplaced}
        )

    if visible_only:
        roots = _prune_hidden(roots)

    logger.debug("navigation built", version_id=version_id, pages=len(pages))
    return NavigationTree(pages=roots)
