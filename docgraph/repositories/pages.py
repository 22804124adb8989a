"""Navigable page persistence.

A page belongs to exactly one version (``IN_VERSION``, fixed at creation),
optionally hangs under a parent page of the same version (``CHILD_OF``) and
optionally displays one document (``DISPLAYS``).  The repository keeps the
``CHILD_OF`` edges a tree: parents must exist and share the version, and a
page can never be moved under its own descendant.
"""

from __future__ import annotations

from typing import Any, Optional

from docgraph.db.models import Node
from docgraph.errors import NotFoundError, ValidationError
from docgraph.log import get_logger
from docgraph.models import (
    CHILD_OF,
    DISPLAYS,
    DOCUMENT,
    IN_VERSION,
    PAGE,
    VERSION,
    Page,
    validate_slug,
)
from docgraph.store.graph import GraphStore

logger = get_logger(__name__)


def _check_order(order: int) -> int:
    if order < 0:
        raise ValidationError(f"Page order must be >= 0, got {order}", details={"order": order})
    return order


async def _first_id(graph: GraphStore, edge_type: str, page_id: str) -> Optional[str]:
    nodes = await graph.traverse(edge_type, page_id, "out")
    return nodes[0].id if nodes else None


async def _to_page(graph: GraphStore, node: Node) -> Page:
    return Page.from_node(
        node,
        version_id=await _first_id(graph, IN_VERSION, node.id),
        parent_page_id=await _first_id(graph, CHILD_OF, node.id),
        document_id=await _first_id(graph, DISPLAYS, node.id),
    )


async def _require_page(graph: GraphStore, page_id: str) -> Node:
    node = await graph.get_node(PAGE, page_id)
    if node is None:
        raise NotFoundError(f"Page with id '{page_id}' not found", details={"id": page_id})
    return node


async def _require_parent(graph: GraphStore, parent_id: str, version_id: str) -> None:
    await _require_page(graph, parent_id)
    parent_version = await _first_id(graph, IN_VERSION, parent_id)
    if parent_version != version_id:
        raise ValidationError(
            "Parent page must belong to the same version",
            details={"parent_page_id": parent_id, "version_id": version_id},
        )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def create_page(
    graph: GraphStore,
    *,
    slug: str,
    title: str,
    version_id: str,
    parent_page_id: Optional[str] = None,
    order: int = 0,
    visible: bool = False,
) -> Page:
    validate_slug(slug)
    _check_order(order)
    if await graph.get_node(VERSION, version_id) is None:
        raise NotFoundError(
            f"Version with id '{version_id}' not found", details={"id": version_id}
        )
    if parent_page_id is not None:
        await _require_parent(graph, parent_page_id, version_id)

    node = await graph.create_node(
        PAGE, {"slug": slug, "title": title, "order": order, "visible": visible}
    )
    await graph.create_edge(IN_VERSION, node.id, version_id)
    if parent_page_id is not None:
        await graph.create_edge(CHILD_OF, node.id, parent_page_id)

    logger.info("page created", page_id=node.id, version_id=version_id, parent_page_id=parent_page_id)
    return Page.from_node(node, version_id=version_id, parent_page_id=parent_page_id)


async def get_page(graph: GraphStore, page_id: str) -> Optional[Page]:
    node = await graph.get_node(PAGE, page_id)
    return await _to_page(graph, node) if node else None


async def update_page(
    graph: GraphStore,
    page_id: str,
    *,
    slug: Optional[str] = None,
    title: Optional[str] = None,
    order: Optional[int] = None,
    visible: Optional[bool] = None,
    expected_revision: Optional[int] = None,
) -> Optional[Page]:
    """Update page fields.  The version a page belongs to cannot be changed."""
    fields: dict[str, Any] = {}
    if slug is not None:
        fields["slug"] = validate_slug(slug)
    if title is not None:
        fields["title"] = title
    if order is not None:
        fields["order"] = _check_order(order)
    if visible is not None:
        fields["visible"] = visible
    node = await graph.update_node(PAGE, page_id, fields, expected_revision=expected_revision)
    if node is None:
        return None
    logger.info("page updated", page_id=page_id, fields=sorted(fields))
    return await _to_page(graph, node)


async def delete_page(graph: GraphStore, page_id: str) -> bool:
    """Delete a page.  Its child pages lose their parent and become roots."""
    deleted = await graph.delete_node(PAGE, page_id)
    if deleted:
        logger.info("page deleted", page_id=page_id)
    return deleted


async def list_pages(
    graph: GraphStore,
    *,
    version_id: Optional[str] = None,
    visible: Optional[bool] = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Page], int]:
    if version_id is None:
        page = await graph.list_nodes(PAGE, {"visible": visible}, limit, offset)
        return [await _to_page(graph, n) for n in page.items], page.total

    nodes = [n for n in await graph.traverse(IN_VERSION, version_id, "in") if n.label == PAGE]
    if visible is not None:
        nodes = [n for n in nodes if bool(n.get("visible", False)) == visible]
    window = nodes[offset : offset + limit]
    return [await _to_page(graph, n) for n in window], len(nodes)


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

async def link_document(graph: GraphStore, page_id: str, document_id: str) -> Page:
    """Make *page_id* display *document_id*, replacing any earlier document."""
    node = await _require_page(graph, page_id)
    if await graph.get_node(DOCUMENT, document_id) is None:
        raise NotFoundError(
            f"Document with id '{document_id}' not found", details={"id": document_id}
        )
    await graph.delete_edges_from(DISPLAYS, page_id)
    await graph.create_edge(DISPLAYS, page_id, document_id)
    logger.info("page linked to document", page_id=page_id, document_id=document_id)
    return await _to_page(graph, node)


async def unlink_document(graph: GraphStore, page_id: str) -> None:
    await _require_page(graph, page_id)
    if await graph.delete_edges_from(DISPLAYS, page_id) == 0:
        raise NotFoundError(
            f"Page '{page_id}' does not display a document", details={"page_id": page_id}
        )
    logger.info("page unlinked from document", page_id=page_id)


async def move_page(
    graph: GraphStore,
    page_id: str,
    parent_page_id: Optional[str],
    order: Optional[int] = None,
) -> Page:
    """Re-parent a page inside its version (``None`` makes it a root).

    Raises:
        NotFoundError: If the page or the new parent does not exist.
        ValidationError: If the parent is in another version, or is the page
            itself or one of its descendants.
    """
    if order is not None:
        _check_order(order)
    node = await _require_page(graph, page_id)
    if parent_page_id is not None:
        version_id = await _first_id(graph, IN_VERSION, page_id)
        await _require_parent(graph, parent_page_id, version_id or "")
        if parent_page_id == page_id:
            raise ValidationError("A page cannot be its own parent", details={"page_id": page_id})
        # Walk up from the new parent; meeting the page means it would become its own ancestor.
        ancestor: Optional[str] = parent_page_id
        seen: set[str] = set()
        while ancestor is not None and ancestor not in seen:
            if ancestor == page_id:
                raise ValidationError(
                    "A page cannot be moved under its own descendant",
                    details={"page_id": page_id, "parent_page_id": parent_page_id},
                )
            seen.add(ancestor)
            ancestor = await _first_id(graph, CHILD_OF, ancestor)

    await graph.delete_edges_from(CHILD_OF, page_id)
    if parent_page_id is not None:
        await graph.create_edge(CHILD_OF, page_id, parent_page_id)
    if order is not None:
        node = await graph.update_node(PAGE, page_id, {"order": order}) or node

    logger.info("page moved", page_id=page_id, parent_page_id=parent_page_id)
    return await _to_page(graph, node)
