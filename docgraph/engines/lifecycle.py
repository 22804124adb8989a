"""Document status workflow.

::

    draft -> in_review -> done -> publish
               |                     |
               v                     v
             draft                 draft

Pure functions; persisting the new status is the repository's job.
"""

from __future__ import annotations

from dataclasses import replace

from docgraph.errors import InvalidStatusTransitionError
from docgraph.models import Document, DocumentStatus, parse_document_status

_TRANSITIONS: dict[DocumentStatus, tuple[DocumentStatus, ...]] = {
    DocumentStatus.DRAFT: (DocumentStatus.IN_REVIEW,),
    DocumentStatus.IN_REVIEW: (DocumentStatus.DONE, DocumentStatus.DRAFT),
    DocumentStatus.DONE: (DocumentStatus.PUBLISH,),
    DocumentStatus.PUBLISH: (DocumentStatus.DRAFT,),
}


def allowed_transitions(current: DocumentStatus | str) -> tuple[DocumentStatus, ...]:
    return _TRANSITIONS[parse_document_status(current)]


def can_transition(current: DocumentStatus | str, requested: DocumentStatus | str) -> bool:
    """Return ``True`` if *requested* is a legal next status after *current*.

    Same-status pairs are not transitions and return ``False``.
    """
    return parse_document_status(requested) in allowed_transitions(current)


def apply_transition(document: Document, requested: DocumentStatus | str) -> Document:
    """Return a copy of *document* moved to *requested*.

    Raises:
        ValidationError: If *requested* is not a document status.
        InvalidStatusTransitionError: If the workflow does not allow the move.
    """
    target = parse_document_status(requested)
    if not can_transition(document.status, target):
        raise InvalidStatusTransitionError(document.status.value, target.value)
    return replace(document, status=target)
