"""Glossary concept persistence.

Relationships between concepts are managed by
:mod:`docgraph.engines.relations`; this module only handles the nodes.
"""

from __future__ import annotations

from typing import Any, Optional

from docgraph.log import get_logger
from docgraph.models import CONCEPT, Concept, validate_lang
from docgraph.store.graph import GraphStore

logger = get_logger(__name__)


async def create_concept(graph: GraphStore, *, term: str, description: str, lang: str) -> Concept:
    validate_lang(lang)
    node = await graph.create_node(
        CONCEPT, {"term": term, "description": description, "lang": lang}
    )
    logger.info("concept created", concept_id=node.id, term=term, lang=lang)
    return Concept.from_node(node)


async def get_concept(graph: GraphStore, concept_id: str) -> Optional[Concept]:
    node = await graph.get_node(CONCEPT, concept_id)
    return Concept.from_node(node) if node else None


async def update_concept(
    graph: GraphStore,
    concept_id: str,
    *,
    term: Optional[str] = None,
    description: Optional[str] = None,
    expected_revision: Optional[int] = None,
) -> Optional[Concept]:
    fields: dict[str, Any] = {}
    if term is not None:
        fields["term"] = term
    if description is not None:
        fields["description"] = description
    node = await graph.update_node(CONCEPT, concept_id, fields, expected_revision=expected_revision)
    if node is None:
        return None
    logger.info("concept updated", concept_id=concept_id, fields=sorted(fields))
    return Concept.from_node(node)


async def delete_concept(graph: GraphStore, concept_id: str) -> bool:
    """Delete a concept; its relationships and usages disappear with it."""
    deleted = await graph.delete_node(CONCEPT, concept_id)
    if deleted:
        logger.info("concept deleted", concept_id=concept_id)
    return deleted


async def list_concepts(
    graph: GraphStore,
    *,
    lang: Optional[str] = None,
    term: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Concept], int]:
    """One page of concepts.  *term* matches as a case-insensitive substring."""
    page = await graph.list_nodes(CONCEPT, {"lang": lang, "term__contains": term}, limit, offset)
    return [Concept.from_node(n) for n in page.items], page.total
