"""Typed domain entities.

The DB layer hands back generic :class:`~docgraph.db.models.Node` rows; the
repositories turn them into the dataclasses below with the ``from_node``
constructors.  Relationship-derived fields (a page's version, parent and
displayed document) are passed in by the caller because they live on edges.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from docgraph.db.models import Node
from docgraph.errors import ValidationError


# ---------------------------------------------------------------------------
# Labels and edge types
# ---------------------------------------------------------------------------

DOCUMENT = "Document"
CONCEPT = "Concept"
PAGE = "Page"
VERSION = "Version"
TAG = "Tag"

SUBTYPE_OF = "SUBTYPE_OF"
PART_OF = "PART_OF"
SYNONYM_OF = "SYNONYM_OF"
USES_CONCEPT = "USES_CONCEPT"
IN_VERSION = "IN_VERSION"
CHILD_OF = "CHILD_OF"
DISPLAYS = "DISPLAYS"
HAS_TAG = "HAS_TAG"
LINKS_TO = "LINKS_TO"
WORKING_COPY_OF = "WORKING_COPY_OF"


class DocumentType(str, Enum):
    API = "api"
    GENERAL = "general"
    TUTORIAL = "tutorial"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    DONE = "done"
    PUBLISH = "publish"


# ---------------------------------------------------------------------------
# Field formats
# ---------------------------------------------------------------------------

LANG_PATTERN = r"^[a-z]{2}$"
SLUG_PATTERN = r"^[a-z0-9-]+$"
VERSION_PATTERN = r"^v\d+\.\d+\.\d+$"

_LANG_RE = re.compile(LANG_PATTERN)
_SLUG_RE = re.compile(SLUG_PATTERN)
_VERSION_RE = re.compile(VERSION_PATTERN)


def validate_lang(lang: str) -> str:
    if not _LANG_RE.match(lang):
        raise ValidationError(
            f'Invalid language code {lang!r}. Must be ISO 639-1 format (e.g., "en", "ko")'
        )
    return lang


def validate_slug(slug: str) -> str:
    if not _SLUG_RE.match(slug):
        raise ValidationError(
            f"Invalid slug {slug!r}. Slug must be lowercase alphanumeric with hyphens only"
        )
    return slug


def validate_version(version: str) -> str:
    if not _VERSION_RE.match(version):
        raise ValidationError(
            f"Invalid version {version!r}. Version must follow semantic versioning (e.g., v1.0.0)"
        )
    return version


def parse_document_type(value: DocumentType | str) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in DocumentType)
        raise ValidationError(
            f"Invalid document type {value!r}. Must be one of: {allowed}"
        ) from None


def parse_document_status(value: DocumentStatus | str) -> DocumentStatus:
    try:
        return DocumentStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in DocumentStatus)
        raise ValidationError(
            f"Invalid document status {value!r}. Must be one of: {allowed}"
        ) from None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass
class Document:
    id: str
    type: DocumentType
    status: DocumentStatus
    title: str
    lang: str
    storage_key: str
    created_at: datetime
    updated_at: datetime
    summary: Optional[str] = None
    revision: int = 1
    content: Optional[str] = None

    @classmethod
    def from_node(cls, node: Node, content: Optional[str] = None) -> "Document":
        return cls(
            id=node.id,
            type=DocumentType(node.get("type", DocumentType.GENERAL.value)),
            status=DocumentStatus(node.get("status", DocumentStatus.DRAFT.value)),
            title=node.get("title", ""),
            lang=node.get("lang", ""),
            storage_key=node.get("storage_key", ""),
            summary=node.get("summary"),
            created_at=node.created_at,
            updated_at=node.updated_at,
            revision=node.revision,
            content=content,
        )


@dataclass
class Concept:
    id: str
    term: str
    description: str
    lang: str
    created_at: datetime
    updated_at: datetime
    revision: int = 1

    @classmethod
    def from_node(cls, node: Node) -> "Concept":
        return cls(
            id=node.id,
            term=node.get("term", ""),
            description=node.get("description", ""),
            lang=node.get("lang", ""),
            created_at=node.created_at,
            updated_at=node.updated_at,
            revision=node.revision,
        )


@dataclass
class Page:
    id: str
    slug: str
    title: str
    order: int
    visible: bool
    created_at: datetime
    updated_at: datetime
    version_id: Optional[str] = None
    parent_page_id: Optional[str] = None
    document_id: Optional[str] = None
    revision: int = 1

    @classmethod
    def from_node(
        cls,
        node: Node,
        version_id: Optional[str] = None,
        parent_page_id: Optional[str] = None,
        document_id: Optional[str] = None,
    ) -> "Page":
        return cls(
            id=node.id,
            slug=node.get("slug", ""),
            title=node.get("title", ""),
            order=int(node.get("order", 0)),
            visible=bool(node.get("visible", False)),
            created_at=node.created_at,
            updated_at=node.updated_at,
            version_id=version_id,
            parent_page_id=parent_page_id,
            document_id=document_id,
            revision=node.revision,
        )


@dataclass
class Version:
    id: str
    version: str
    name: str
    is_public: bool
    is_main: bool
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    revision: int = 1

    @classmethod
    def from_node(cls, node: Node) -> "Version":
        return cls(
            id=node.id,
            version=node.get("version", ""),
            name=node.get("name", ""),
            description=node.get("description"),
            is_public=bool(node.get("is_public", False)),
            is_main=bool(node.get("is_main", False)),
            created_at=node.created_at,
            updated_at=node.updated_at,
            revision=node.revision,
        )


@dataclass
class Tag:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    color: Optional[str] = None
    description: Optional[str] = None
    revision: int = 1

    @classmethod
    def from_node(cls, node: Node) -> "Tag":
        return cls(
            id=node.id,
            name=node.get("name", ""),
            color=node.get("color"),
            description=node.get("description"),
            created_at=node.created_at,
            updated_at=node.updated_at,
            revision=node.revision,
        )


# ---------------------------------------------------------------------------
# Engine results
# ---------------------------------------------------------------------------

@dataclass
class NavigationItem:
    id: str
    slug: str
    title: str
    order: int
    visible: bool
    document_id: Optional[str] = None
    children: list["NavigationItem"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NavigationTree:
    """A forest of root pages for one version."""

    pages: list[NavigationItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"pages": [p.to_dict() for p in self.pages]}


@dataclass
class DocumentSummary:
    id: str
    title: str
    type: DocumentType
    status: DocumentStatus
    lang: str

    @classmethod
    def from_node(cls, node: Node) -> "DocumentSummary":
        return cls(
            id=node.id,
            title=node.get("title", ""),
            type=DocumentType(node.get("type", DocumentType.GENERAL.value)),
            status=DocumentStatus(node.get("status", DocumentStatus.DRAFT.value)),
            lang=node.get("lang", ""),
        )


@dataclass
class ImpactReport:
    items: list[DocumentSummary] = field(default_factory=list)
    total: int = 0


@dataclass
class SearchResult:
    document_id: str
    title: str
    relevance_score: float
    type: str
    page_id: Optional[str] = None
    summary: Optional[str] = None
    matched_fields: list[str] = field(default_factory=list)


@dataclass
class SearchResponse:
    results: list[SearchResult]
    total: int
    limit: int
    offset: int
