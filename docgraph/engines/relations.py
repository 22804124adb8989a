"""Concept relationship rules: hierarchy, part-whole and synonymy.

Every link operation checks its preconditions in a fixed order before any
write:

1. both concepts exist (``NotFoundError`` naming the first missing id),
2. the ids differ (``ValidationError``),
3. for synonyms only, both concepts share a language (``ValidationError``).

``SUBTYPE_OF`` and ``PART_OF`` additionally stay acyclic: linking
``child -> parent`` is refused when ``child`` is already reachable from
``parent`` over edges of the same type.

``SYNONYM_OF`` is stored as a single directed edge but read in both
directions, so ``link_synonym_of(a, b)`` followed by ``link_synonym_of(b, a)``
leaves one edge, and either order unlinks it.
"""

from __future__ import annotations

from typing import Optional

from docgraph.config import settings
from docgraph.errors import NotFoundError, ValidationError
from docgraph.log import get_logger
from docgraph.models import (
    CONCEPT,
    PART_OF,
    SUBTYPE_OF,
    SYNONYM_OF,
    USES_CONCEPT,
    Concept,
)
from docgraph.store.graph import GraphStore

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------

async def _require_concept(graph: GraphStore, concept_id: str) -> Concept:
    node = await graph.get_node(CONCEPT, concept_id)
    if node is None:
        raise NotFoundError(
            f"Concept with id '{concept_id}' not found", details={"id": concept_id}
        )
    return Concept.from_node(node)


async def _require_pair(graph: GraphStore, first_id: str, second_id: str) -> tuple[Concept, Concept]:
    first = await _require_concept(graph, first_id)
    second = await _require_concept(graph, second_id)
    if first_id == second_id:
        raise ValidationError("Cannot link concept to itself", details={"id": first_id})
    return first, second


async def _check_acyclic(
    graph: GraphStore,
    edge_type: str,
    child_id: str,
    parent_id: str,
    max_depth: Optional[int] = None,
) -> None:
    depth = settings.relation_max_depth if max_depth is None else max_depth
    found, truncated = await graph.reachability(edge_type, parent_id, child_id, depth)
    if found:
        raise ValidationError(
            f"Linking '{child_id}' {edge_type} '{parent_id}' would create a cycle",
            details={"edge_type": edge_type, "from": child_id, "to": parent_id},
        )
    if truncated:
        raise ValidationError(
            f"{edge_type} hierarchy too deep (more than {depth} levels)",
            details={"edge_type": edge_type, "max_depth": depth},
        )


async def _neighbours(
    graph: GraphStore, edge_type: str, concept_id: str, direction: str
) -> list[Concept]:
    await _require_concept(graph, concept_id)
    nodes = await graph.traverse(edge_type, concept_id, direction)
    return [Concept.from_node(n) for n in nodes if n.label == CONCEPT]


async def _link_acyclic(graph: GraphStore, edge_type: str, child_id: str, parent_id: str) -> None:
    await _require_pair(graph, child_id, parent_id)
    if await graph.edge_exists(edge_type, child_id, parent_id):
        return
    await _check_acyclic(graph, edge_type, child_id, parent_id)
    await graph.create_edge(edge_type, child_id, parent_id)
    logger.info("concept relation linked", edge_type=edge_type, from_id=child_id, to_id=parent_id)


async def _unlink(graph: GraphStore, edge_type: str, from_id: str, to_id: str, message: str) -> None:
    if not await graph.delete_edge(edge_type, from_id, to_id):
        raise NotFoundError(message, details={"from": from_id, "to": to_id})
    logger.info("concept relation unlinked", edge_type=edge_type, from_id=from_id, to_id=to_id)


# ---------------------------------------------------------------------------
# Hierarchy (SUBTYPE_OF: child -> parent)
# ---------------------------------------------------------------------------

async def link_subtype_of(graph: GraphStore, child_id: str, parent_id: str) -> None:
    """Record that *child_id* is a subtype of *parent_id*."""
    await _link_acyclic(graph, SUBTYPE_OF, child_id, parent_id)


async def unlink_subtype_of(graph: GraphStore, child_id: str, parent_id: str) -> None:
    await _unlink(
        graph,
        SUBTYPE_OF,
        child_id,
        parent_id,
        f"Subtype relationship from '{child_id}' to '{parent_id}' not found",
    )


async def get_supertypes(graph: GraphStore, concept_id: str) -> list[Concept]:
    return await _neighbours(graph, SUBTYPE_OF, concept_id, "out")


async def get_subtypes(graph: GraphStore, concept_id: str) -> list[Concept]:
    return await _neighbours(graph, SUBTYPE_OF, concept_id, "in")


# ---------------------------------------------------------------------------
# Part-whole (PART_OF: part -> whole)
# ---------------------------------------------------------------------------

async def link_part_of(graph: GraphStore, part_id: str, whole_id: str) -> None:
    """Record that *part_id* is a part of *whole_id*."""
    await _link_acyclic(graph, PART_OF, part_id, whole_id)


async def unlink_part_of(graph: GraphStore, part_id: str, whole_id: str) -> None:
    await _unlink(
        graph,
        PART_OF,
        part_id,
        whole_id,
        f"Part-of relationship from '{part_id}' to '{whole_id}' not found",
    )


async def get_whole_of(graph: GraphStore, concept_id: str) -> list[Concept]:
    """Concepts *concept_id* is a part of."""
    return await _neighbours(graph, PART_OF, concept_id, "out")


async def get_parts(graph: GraphStore, concept_id: str) -> list[Concept]:
    return await _neighbours(graph, PART_OF, concept_id, "in")


# ---------------------------------------------------------------------------
# Synonymy (SYNONYM_OF, symmetric)
# ---------------------------------------------------------------------------

async def link_synonym_of(graph: GraphStore, concept_id: str, other_id: str) -> None:
    first, second = await _require_pair(graph, concept_id, other_id)
    if first.lang != second.lang:
        raise ValidationError(
            "Synonym concepts must be in the same language. "
            f"Got '{first.lang}' and '{second.lang}'",
            details={"langs": [first.lang, second.lang]},
        )
    if await graph.edge_exists(SYNONYM_OF, concept_id, other_id) or await graph.edge_exists(
        SYNONYM_OF, other_id, concept_id
    ):
        return
    await graph.create_edge(SYNONYM_OF, concept_id, other_id)
    logger.info("concepts linked as synonyms", concept_id=concept_id, other_id=other_id)


async def unlink_synonym_of(graph: GraphStore, concept_id: str, other_id: str) -> None:
    removed = await graph.delete_edge(SYNONYM_OF, concept_id, other_id)
    if not removed:
        removed = await graph.delete_edge(SYNONYM_OF, other_id, concept_id)
    if not removed:
        raise NotFoundError(
            f"Synonym relationship between '{concept_id}' and '{other_id}' not found",
            details={"from": concept_id, "to": other_id},
        )
    logger.info("concept synonyms unlinked", concept_id=concept_id, other_id=other_id)


async def get_synonyms(graph: GraphStore, concept_id: str) -> list[Concept]:
    return await _neighbours(graph, SYNONYM_OF, concept_id, "both")


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

async def get_relation_counts(graph: GraphStore, concept_id: str) -> dict[str, int]:
    """Count every relationship a concept takes part in."""
    await _require_concept(graph, concept_id)
    edges = await graph.get_edges(concept_id, [SUBTYPE_OF, PART_OF, SYNONYM_OF, USES_CONCEPT])

    def count(edge_type: str, outgoing: Optional[bool]) -> int:
        return sum(
            1
            for e in edges
            if e.edge_type == edge_type
            and (outgoing is None or (e.source_id == concept_id) == outgoing)
        )

    return {
        "supertypes": count(SUBTYPE_OF, True),
        "subtypes": count(SUBTYPE_OF, False),
        "wholes": count(PART_OF, True),
        "parts": count(PART_OF, False),
        "synonyms": count(SYNONYM_OF, None),
        "documents": count(USES_CONCEPT, False),
    }
