"""Tag persistence and tagging.

Tag names are unique.  Documents, concepts and pages carry tags through
``HAS_TAG`` edges (entity -> tag).
"""

from __future__ import annotations

from typing import Any, Optional

from docgraph.db.models import Node
from docgraph.errors import ConflictError, NotFoundError
from docgraph.log import get_logger
from docgraph.models import CONCEPT, DOCUMENT, HAS_TAG, PAGE, TAG, Tag
from docgraph.store.graph import GraphStore

logger = get_logger(__name__)

TAGGABLE = (DOCUMENT, CONCEPT, PAGE)


async def _check_name_free(graph: GraphStore, name: str, tag_id: Optional[str] = None) -> None:
    page = await graph.list_nodes(TAG, {"name": name})
    if any(n.id != tag_id for n in page.items):
        raise ConflictError(f"Tag with name '{name}' already exists", details={"name": name})


async def _require_tag(graph: GraphStore, tag_id: str) -> Node:
    node = await graph.get_node(TAG, tag_id)
    if node is None:
        raise NotFoundError(f"Tag with id '{tag_id}' not found", details={"id": tag_id})
    return node


async def _require_taggable(graph: GraphStore, entity_id: str) -> Node:
    node = await graph.get_node(None, entity_id)
    if node is None or node.label not in TAGGABLE:
        raise NotFoundError(
            f"Taggable entity with id '{entity_id}' not found", details={"id": entity_id}
        )
    return node


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def create_tag(
    graph: GraphStore,
    *,
    name: str,
    color: Optional[str] = None,
    description: Optional[str] = None,
) -> Tag:
    await _check_name_free(graph, name)
    node = await graph.create_node(TAG, {"name": name, "color": color, "description": description})
    logger.info("tag created", tag_id=node.id, name=name)
    return Tag.from_node(node)


async def get_tag(graph: GraphStore, tag_id: str) -> Optional[Tag]:
    node = await graph.get_node(TAG, tag_id)
    return Tag.from_node(node) if node else None


async def update_tag(
    graph: GraphStore,
    tag_id: str,
    *,
    name: Optional[str] = None,
    color: Optional[str] = None,
    description: Optional[str] = None,
) -> Optional[Tag]:
    fields: dict[str, Any] = {}
    if name is not None:
        await _check_name_free(graph, name, tag_id)
        fields["name"] = name
    if color is not None:
        fields["color"] = color
    if description is not None:
        fields["description"] = description
    node = await graph.update_node(TAG, tag_id, fields)
    if node is None:
        return None
    logger.info("tag updated", tag_id=tag_id, fields=sorted(fields))
    return Tag.from_node(node)


async def delete_tag(graph: GraphStore, tag_id: str) -> bool:
    deleted = await graph.delete_node(TAG, tag_id)
    if deleted:
        logger.info("tag deleted", tag_id=tag_id)
    return deleted


async def list_tags(
    graph: GraphStore,
    *,
    name: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Tag], int]:
    """One page of tags; *name* matches as a case-insensitive substring."""
    page = await graph.list_nodes(TAG, {"name__contains": name}, limit, offset)
    return [Tag.from_node(n) for n in page.items], page.total


# ---------------------------------------------------------------------------
# Tagging
# ---------------------------------------------------------------------------

async def attach_tag(graph: GraphStore, entity_id: str, tag_id: str) -> None:
    """Tag a document, concept or page.  Attaching twice is a no-op."""
    entity = await _require_taggable(graph, entity_id)
    await _require_tag(graph, tag_id)
    await graph.create_edge(HAS_TAG, entity_id, tag_id)
    logger.info("tag attached", tag_id=tag_id, entity_id=entity_id, label=entity.label)


async def detach_tag(graph: GraphStore, entity_id: str, tag_id: str) -> None:
    if not await graph.delete_edge(HAS_TAG, entity_id, tag_id):
        raise NotFoundError(
            f"Entity '{entity_id}' is not tagged with '{tag_id}'",
            details={"entity_id": entity_id, "tag_id": tag_id},
        )
    logger.info("tag detached", tag_id=tag_id, entity_id=entity_id)


async def get_entity_tags(graph: GraphStore, entity_id: str) -> list[Tag]:
    await _require_taggable(graph, entity_id)
    return [Tag.from_node(n) for n in await graph.traverse(HAS_TAG, entity_id, "out")]


async def get_tagged_entities(graph: GraphStore, tag_id: str) -> dict[str, list[Node]]:
    """Everything carrying *tag_id*, grouped as documents, concepts and pages."""
    await _require_tag(graph, tag_id)
    grouped: dict[str, list[Node]] = {"documents": [], "concepts": [], "pages": []}
    keys = {DOCUMENT: "documents", CONCEPT: "concepts", PAGE: "pages"}
    for node in await graph.traverse(HAS_TAG, tag_id, "in"):
        if node.label in keys:
            grouped[keys[node.label]].append(node)
    return grouped
