"""Which documents are affected when a concept changes."""

from __future__ import annotations

from typing import Optional

from docgraph.log import get_logger
from docgraph.models import CONCEPT, DOCUMENT, USES_CONCEPT, DocumentSummary, ImpactReport
from docgraph.store.graph import GraphStore

logger = get_logger(__name__)


async def get_impact(graph: GraphStore, concept_id: str) -> Optional[ImpactReport]:
    """List every document with a ``USES_CONCEPT`` edge to *concept_id*.

    Only node metadata is read; document bodies are never fetched.

    Returns:
        The report, or ``None`` if the concept does not exist.
    """
    if await graph.get_node(CONCEPT, concept_id) is None:
        return None

    users = await graph.traverse(USES_CONCEPT, concept_id, "in")
    items = [DocumentSummary.from_node(n) for n in users if n.label == DOCUMENT]
    logger.debug("impact analysed", concept_id=concept_id, documents=len(items))
    return ImpactReport(items=items, total=len(items))
