"""Document persistence.

A document is split across two stores: its metadata is a ``Document`` node
in the graph, its Markdown body an object in the object store under
``storage_key``.  Creation writes the body first and the node second; if the
node write fails the body is deleted again (a one-step saga whose
compensation failure is logged and otherwise ignored, so the caller sees the
original error).

Besides CRUD this module owns the edges that start at a document:
``USES_CONCEPT``, ``LINKS_TO`` and ``WORKING_COPY_OF``.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from docgraph.db.search import index_content
from docgraph.engines.lifecycle import apply_transition
from docgraph.errors import NotFoundError, ValidationError
from docgraph.log import get_logger
from docgraph.models import (
    CONCEPT,
    DOCUMENT,
    LINKS_TO,
    USES_CONCEPT,
    WORKING_COPY_OF,
    Concept,
    Document,
    DocumentStatus,
    DocumentType,
    parse_document_status,
    parse_document_type,
    validate_lang,
)
from docgraph.store.graph import GraphStore
from docgraph.store.objects import ObjectStore, storage_key_for

logger = get_logger(__name__)

CONTENT_TYPE = "text/markdown"


async def _require_document(graph: GraphStore, document_id: str) -> Document:
    node = await graph.get_node(DOCUMENT, document_id)
    if node is None:
        raise NotFoundError(
            f"Document with id '{document_id}' not found", details={"id": document_id}
        )
    return Document.from_node(node)


async def _require_concept(graph: GraphStore, concept_id: str) -> None:
    if await graph.get_node(CONCEPT, concept_id) is None:
        raise NotFoundError(
            f"Concept with id '{concept_id}' not found", details={"id": concept_id}
        )


async def _undo_create(
    graph: GraphStore, objects: ObjectStore, document_id: str, key: str, *, node_created: bool
) -> None:
    """Compensate a partially created document.  Failures here are logged only."""
    if node_created:
        try:
            await graph.delete_node(DOCUMENT, document_id)
        except Exception:
            logger.exception("node compensation failed", document_id=document_id)
    try:
        await objects.delete(key)
    except Exception:
        logger.exception("content compensation failed", document_id=document_id, key=key)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def create_document(
    graph: GraphStore,
    objects: ObjectStore,
    *,
    title: str,
    type: DocumentType | str,
    content: str,
    lang: str,
    summary: Optional[str] = None,
) -> Document:
    """Store the body, then the metadata node, and index both for search.

    New documents always start as ``draft``.  The three writes form a saga: if
    a step fails, the steps before it are undone and the original error is
    raised.
    """
    validate_lang(lang)
    doc_type = parse_document_type(type)
    document_id = str(uuid.uuid4())
    key = storage_key_for(document_id)

    await objects.put(key, content.encode("utf-8"), CONTENT_TYPE)
    try:
        node = await graph.create_node(
            DOCUMENT,
            {
                "title": title,
                "type": doc_type.value,
                "status": DocumentStatus.DRAFT.value,
                "lang": lang,
                "storage_key": key,
                "summary": summary,
            },
            node_id=document_id,
        )
    except Exception:
        logger.error("document node creation failed, removing content", document_id=document_id)
        await _undo_create(graph, objects, document_id, key, node_created=False)
        raise

    try:
        await graph.run(index_content, document_id, content)
    except Exception:
        logger.error("document indexing failed, removing document", document_id=document_id)
        await _undo_create(graph, objects, document_id, key, node_created=True)
        raise

    logger.info("document created", document_id=document_id, type=doc_type.value, lang=lang)
    return Document.from_node(node, content=content)


async def get_document(
    graph: GraphStore, objects: ObjectStore, document_id: str
) -> Optional[Document]:
    """Return the document with its body, or ``None`` if it does not exist.

    A missing body is logged and returned as an empty string.
    """
    node = await graph.get_node(DOCUMENT, document_id)
    if node is None:
        return None
    try:
        content = (await objects.get(node.get("storage_key", ""))).decode("utf-8")
    except NotFoundError:
        logger.warning("document content missing", document_id=document_id)
        content = ""
    return Document.from_node(node, content=content)


async def update_document(
    graph: GraphStore,
    objects: ObjectStore,
    document_id: str,
    *,
    title: Optional[str] = None,
    content: Optional[str] = None,
    status: DocumentStatus | str | None = None,
    summary: Optional[str] = None,
    expected_revision: Optional[int] = None,
) -> Optional[Document]:
    """Update metadata, body and/or status.

    A status change must be allowed by the lifecycle workflow; asking for the
    status the document already has changes nothing.  The node write is a
    compare-and-swap against the revision read here (or *expected_revision*
    when given), so concurrent transitions cannot both succeed.

    Returns:
        The updated document, or ``None`` if it does not exist.

    Raises:
        InvalidStatusTransitionError: For a transition outside the workflow.
        ConflictError: If the document changed since it was read.
    """
    node = await graph.get_node(DOCUMENT, document_id)
    if node is None:
        return None
    current = Document.from_node(node)

    fields: dict[str, Any] = {}
    if title is not None:
        fields["title"] = title
    if summary is not None:
        fields["summary"] = summary
    if status is not None and parse_document_status(status) != current.status:
        fields["status"] = apply_transition(current, status).status.value

    revision = expected_revision if expected_revision is not None else node.revision
    updated = await graph.update_node(DOCUMENT, document_id, fields, expected_revision=revision)
    if updated is None:
        return None

    if content is not None:
        await objects.put(current.storage_key, content.encode("utf-8"), CONTENT_TYPE)
        await graph.run(index_content, document_id, content)

    if "status" in fields:
        logger.info(
            "document status changed",
            document_id=document_id,
            from_status=current.status.value,
            to_status=fields["status"],
        )
    else:
        logger.info("document updated", document_id=document_id, fields=sorted(fields))
    return await get_document(graph, objects, document_id)


async def delete_document(graph: GraphStore, objects: ObjectStore, document_id: str) -> bool:
    """Remove the body and the node; its edges go with the node."""
    node = await graph.get_node(DOCUMENT, document_id)
    if node is None:
        return False
    await objects.delete(node.get("storage_key", storage_key_for(document_id)))
    deleted = await graph.delete_node(DOCUMENT, document_id)
    logger.info("document deleted", document_id=document_id)
    return deleted


async def list_documents(
    graph: GraphStore,
    *,
    status: DocumentStatus | str | None = None,
    type: DocumentType | str | None = None,
    lang: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Document], int]:
    """Return one page of documents (metadata only) and the match count."""
    filters = {
        "status": parse_document_status(status).value if status is not None else None,
        "type": parse_document_type(type).value if type is not None else None,
        "lang": lang,
    }
    page = await graph.list_nodes(DOCUMENT, filters, limit, offset)
    return [Document.from_node(n) for n in page.items], page.total


# ---------------------------------------------------------------------------
# Concept usage (USES_CONCEPT)
# ---------------------------------------------------------------------------

async def link_concept(graph: GraphStore, document_id: str, concept_id: str) -> None:
    """Record that a document uses a concept.  Linking twice is a no-op."""
    await _require_document(graph, document_id)
    await _require_concept(graph, concept_id)
    await graph.create_edge(USES_CONCEPT, document_id, concept_id)
    logger.info("document linked to concept", document_id=document_id, concept_id=concept_id)


async def unlink_concept(graph: GraphStore, document_id: str, concept_id: str) -> None:
    if not await graph.delete_edge(USES_CONCEPT, document_id, concept_id):
        raise NotFoundError(
            f"Document '{document_id}' does not use concept '{concept_id}'",
            details={"document_id": document_id, "concept_id": concept_id},
        )
    logger.info("document unlinked from concept", document_id=document_id, concept_id=concept_id)


async def get_document_concepts(graph: GraphStore, document_id: str) -> list[Concept]:
    await _require_document(graph, document_id)
    nodes = await graph.traverse(USES_CONCEPT, document_id, "out")
    return [Concept.from_node(n) for n in nodes]


# ---------------------------------------------------------------------------
# Document links (LINKS_TO)
# ---------------------------------------------------------------------------

async def link_documents(graph: GraphStore, source_id: str, target_id: str) -> None:
    await _require_document(graph, source_id)
    await _require_document(graph, target_id)
    if source_id == target_id:
        raise ValidationError("Cannot link document to itself", details={"id": source_id})
    await graph.create_edge(LINKS_TO, source_id, target_id)
    logger.info("documents linked", source_id=source_id, target_id=target_id)


async def unlink_documents(graph: GraphStore, source_id: str, target_id: str) -> None:
    if not await graph.delete_edge(LINKS_TO, source_id, target_id):
        raise NotFoundError(
            f"Link from '{source_id}' to '{target_id}' not found",
            details={"source_id": source_id, "target_id": target_id},
        )


async def get_linked_documents(graph: GraphStore, document_id: str) -> list[Document]:
    """Documents *document_id* links to."""
    await _require_document(graph, document_id)
    return [Document.from_node(n) for n in await graph.traverse(LINKS_TO, document_id, "out")]


async def get_linking_documents(graph: GraphStore, document_id: str) -> list[Document]:
    """Documents that link to *document_id*."""
    await _require_document(graph, document_id)
    return [Document.from_node(n) for n in await graph.traverse(LINKS_TO, document_id, "in")]


# ---------------------------------------------------------------------------
# Working copies (WORKING_COPY_OF: copy -> original)
# ---------------------------------------------------------------------------

async def create_working_copy(
    graph: GraphStore, objects: ObjectStore, original_id: str
) -> Document:
    """Clone a document as a new draft and point it at the original."""
    original = await get_document(graph, objects, original_id)
    if original is None:
        raise NotFoundError(
            f"Document with id '{original_id}' not found", details={"id": original_id}
        )
    copy = await create_document(
        graph,
        objects,
        title=original.title,
        type=original.type,
        content=original.content or "",
        lang=original.lang,
        summary=original.summary,
    )
    await graph.create_edge(WORKING_COPY_OF, copy.id, original_id)
    logger.info("working copy created", document_id=copy.id, original_id=original_id)
    return copy


async def link_working_copy(graph: GraphStore, copy_id: str, original_id: str) -> None:
    """Mark *copy_id* as a working copy of *original_id*, replacing any earlier original."""
    await _require_document(graph, copy_id)
    await _require_document(graph, original_id)
    if copy_id == original_id:
        raise ValidationError("A document cannot be a working copy of itself", details={"id": copy_id})
    await graph.delete_edges_from(WORKING_COPY_OF, copy_id)
    await graph.create_edge(WORKING_COPY_OF, copy_id, original_id)


async def unlink_working_copy(graph: GraphStore, copy_id: str, original_id: str) -> None:
    if not await graph.delete_edge(WORKING_COPY_OF, copy_id, original_id):
        raise NotFoundError(
            f"Document '{copy_id}' is not a working copy of '{original_id}'",
            details={"copy_id": copy_id, "original_id": original_id},
        )


async def get_original_document(graph: GraphStore, copy_id: str) -> Optional[Document]:
    await _require_document(graph, copy_id)
    originals = await graph.traverse(WORKING_COPY_OF, copy_id, "out")
    return Document.from_node(originals[0]) if originals else None


async def get_working_copies(graph: GraphStore, original_id: str) -> list[Document]:
    await _require_document(graph, original_id)
    return [Document.from_node(n) for n in await graph.traverse(WORKING_COPY_OF, original_id, "in")]
