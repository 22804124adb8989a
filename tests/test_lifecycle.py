"""Tests for the document status workflow."""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import product

import pytest

from docgraph.engines.lifecycle import allowed_transitions, apply_transition, can_transition
from docgraph.errors import InvalidStatusTransitionError, ValidationError
from docgraph.models import Document, DocumentStatus, DocumentType

ALLOWED = {
    ("draft", "in_review"),
    ("in_review", "done"),
    ("in_review", "draft"),
    ("done", "publish"),
    ("publish", "draft"),
}


def _document(status: DocumentStatus) -> Document:
    now = datetime.now(timezone.utc)
    return Document(
        id="doc-1",
        type=DocumentType.GENERAL,
        status=status,
        title="Getting started",
        lang="en",
        storage_key="documents/doc-1/content.md",
        created_at=now,
        updated_at=now,
    )


@pytest.mark.parametrize("current,requested", list(product([s.value for s in DocumentStatus], repeat=2)))
def test_can_transition_matches_workflow(current: str, requested: str) -> None:
    assert can_transition(current, requested) is ((current, requested) in ALLOWED)


def test_same_status_is_not_a_transition() -> None:
    for status in DocumentStatus:
        assert not can_transition(status, status)


def test_apply_transition_returns_moved_copy() -> None:
    doc = _document(DocumentStatus.DRAFT)
    moved = apply_transition(doc, "in_review")
    assert moved.status is DocumentStatus.IN_REVIEW
    assert doc.status is DocumentStatus.DRAFT
    assert moved.id == doc.id


def test_apply_transition_rejects_skips() -> None:
    doc = _document(DocumentStatus.DRAFT)
    with pytest.raises(InvalidStatusTransitionError) as excinfo:
        apply_transition(doc, DocumentStatus.PUBLISH)
    assert excinfo.value.current == "draft"
    assert excinfo.value.requested == "publish"
    assert excinfo.value.status_code == 400
    assert isinstance(excinfo.value, ValidationError)


def test_allowed_transitions() -> None:
    assert allowed_transitions("in_review") == (DocumentStatus.DONE, DocumentStatus.DRAFT)
    assert allowed_transitions(DocumentStatus.PUBLISH) == (DocumentStatus.DRAFT,)


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(ValidationError, match="archived"):
        can_transition("draft", "archived")
    with pytest.raises(ValidationError):
        allowed_transitions("archived")
