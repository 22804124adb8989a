"""docgraph CLI, entry-point for working with the documentation graph.

Usage:
    python cli/main.py --help

Command groups:
    db        database initialisation
    doc       documents and their review workflow
    concept   glossary concepts, relations and impact analysis
    version   versions and their navigation trees
    page      pages inside a version
    search    ranked document search
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from docgraph.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from docgraph.config import settings
from docgraph.db import get_connection, init_db
from docgraph.engines import impact, relations
from docgraph.engines.lifecycle import allowed_transitions
from docgraph.engines.navigation import build_navigation
from docgraph.engines.search import search as run_search
from docgraph.errors import AppError
from docgraph.log import setup_logging
from docgraph.models import DocumentStatus, DocumentType
from docgraph.repositories import concepts as concepts_repo
from docgraph.repositories import documents as documents_repo
from docgraph.repositories import pages as pages_repo
from docgraph.repositories import versions as versions_repo
from docgraph.store import GraphStore, ObjectStore, SqliteRanker

from cli.rendering import render_navigation

T = TypeVar("T")

app = typer.Typer(
    name="docgraph",
    help="docgraph documentation graph CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


def _run(label: str, fn: Callable[[GraphStore, ObjectStore], Awaitable[T]]) -> T:
    """Open the stores, run *fn* on an event loop and close them again.

    An :class:`AppError` is printed and turned into exit code 1.
    """
    conn = get_connection()
    init_db(conn)
    graph = GraphStore(conn)
    objects = ObjectStore(settings.content_dir)
    try:
        return asyncio.run(fn(graph, objects))
    except AppError as exc:
        typer.echo(f"[{label}] Error ({exc.code}): {exc.message}", err=True)
        raise typer.Exit(1) from exc
    finally:
        graph.close()


# ---------------------------------------------------------------------------
# db
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# doc
# ---------------------------------------------------------------------------
doc_app = typer.Typer(help="Documents and their review workflow.", no_args_is_help=True)
app.add_typer(doc_app, name="doc")


@doc_app.command("create")
def doc_create(
    title: str = typer.Option(..., help="Document title."),
    type: DocumentType = typer.Option(DocumentType.GENERAL, "--type", help="api | general | tutorial."),
    lang: str = typer.Option("en", help="ISO 639-1 language code."),
    file: Optional[Path] = typer.Option(None, "--file", help="Markdown file with the body."),
    content: Optional[str] = typer.Option(None, help="Inline Markdown body."),
) -> None:
    """Create a draft document from a file or inline text."""
    if file is not None:
        body = file.read_text(encoding="utf-8")
    elif content is not None:
        body = content
    else:
        typer.echo("[doc create] Provide --file or --content.", err=True)
        raise typer.Exit(1)

    doc = _run(
        "doc create",
        lambda graph, objects: documents_repo.create_document(
            graph, objects, title=title, type=type, content=body, lang=lang
        ),
    )
    typer.echo(f"[doc create] Created document: {doc.id}  title={doc.title!r}  status={doc.status.value}")


@doc_app.command("show")
def doc_show(document_id: str = typer.Argument(..., help="Document ID.")) -> None:
    """Print a document's metadata and body."""
    doc = _run(
        "doc show",
        lambda graph, objects: documents_repo.get_document(graph, objects, document_id),
    )
    if doc is None:
        typer.echo(f"[doc show] Document not found: {document_id}", err=True)
        raise typer.Exit(1)
    next_steps = ", ".join(s.value for s in allowed_transitions(doc.status))
    typer.echo(f"{doc.title}  [{doc.type.value}, {doc.lang}]")
    typer.echo(f"status: {doc.status.value}  (next: {next_steps})  revision: {doc.revision}")
    typer.echo("")
    typer.echo(doc.content or "")


@doc_app.command("status")
def doc_status(
    document_id: str = typer.Argument(..., help="Document ID."),
    status: DocumentStatus = typer.Argument(..., help="draft | in_review | done | publish."),
) -> None:
    """Move a document through the review workflow."""
    doc = _run(
        "doc status",
        lambda graph, objects: documents_repo.update_document(
            graph, objects, document_id, status=status
        ),
    )
    if doc is None:
        typer.echo(f"[doc status] Document not found: {document_id}", err=True)
        raise typer.Exit(1)
    typer.echo(f"[doc status] {doc.id} is now {doc.status.value}")


@doc_app.command("list")
def doc_list(
    status: Optional[DocumentStatus] = typer.Option(None, help="Filter by status."),
    type: Optional[DocumentType] = typer.Option(None, "--type", help="Filter by type."),
    lang: Optional[str] = typer.Option(None, help="Filter by language."),
    limit: int = typer.Option(20, help="Maximum rows."),
) -> None:
    """List documents, newest first."""
    items, total = _run(
        "doc list",
        lambda graph, objects: documents_repo.list_documents(
            graph, status=status, type=type, lang=lang, limit=limit
        ),
    )
    if not items:
        typer.echo("[doc list] No documents found.")
        return
    for d in items:
        typer.echo(f"  {d.id}  [{d.status.value:<9}] [{d.type.value}] {d.title!r}")
    typer.echo(f"  ({len(items)} of {total})")


@doc_app.command("use")
def doc_use(
    document_id: str = typer.Argument(..., help="Document ID."),
    concept_id: str = typer.Argument(..., help="Concept ID."),
) -> None:
    """Record that a document uses a glossary concept."""
    _run(
        "doc use",
        lambda graph, objects: documents_repo.link_concept(graph, document_id, concept_id),
    )
    typer.echo(f"[doc use] {document_id[:8]} USES_CONCEPT {concept_id[:8]}")


# ---------------------------------------------------------------------------
# concept
# ---------------------------------------------------------------------------
concept_app = typer.Typer(help="Glossary concepts.", no_args_is_help=True)
app.add_typer(concept_app, name="concept")

_LINKERS: dict[str, Callable[[GraphStore, str, str], Awaitable[None]]] = {
    "subtype": relations.link_subtype_of,
    "part": relations.link_part_of,
    "synonym": relations.link_synonym_of,
}


@concept_app.command("create")
def concept_create(
    term: str = typer.Option(..., help="Glossary term."),
    description: str = typer.Option(..., help="Definition."),
    lang: str = typer.Option("en", help="ISO 639-1 language code."),
) -> None:
    """Create a glossary concept."""
    concept = _run(
        "concept create",
        lambda graph, objects: concepts_repo.create_concept(
            graph, term=term, description=description, lang=lang
        ),
    )
    typer.echo(f"[concept create] Created concept: {concept.id}  term={concept.term!r}")


@concept_app.command("link")
def concept_link(
    source_id: str = typer.Argument(..., help="Child / part / concept ID."),
    target_id: str = typer.Argument(..., help="Parent / whole / synonym ID."),
    relation: str = typer.Option("subtype", help="subtype | part | synonym."),
) -> None:
    """Relate two concepts."""
    linker = _LINKERS.get(relation)
    if linker is None:
        typer.echo(f"[concept link] Unknown relation {relation!r}. Use: subtype | part | synonym", err=True)
        raise typer.Exit(1)
    _run("concept link", lambda graph, objects: linker(graph, source_id, target_id))
    typer.echo(f"[concept link] {source_id[:8]} --{relation}--> {target_id[:8]}")


@concept_app.command("impact")
def concept_impact(concept_id: str = typer.Argument(..., help="Concept ID.")) -> None:
    """List the documents that use a concept."""
    report = _run("concept impact", lambda graph, objects: impact.get_impact(graph, concept_id))
    if report is None:
        typer.echo(f"[concept impact] Concept not found: {concept_id}", err=True)
        raise typer.Exit(1)
    typer.echo(f"[concept impact] {report.total} document(s) use this concept.")
    for d in report.items:
        typer.echo(f"  {d.id}  [{d.status.value}] {d.title!r}")


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------
version_app = typer.Typer(help="Versions and navigation.", no_args_is_help=True)
app.add_typer(version_app, name="version")


@version_app.command("create")
def version_create(
    version: str = typer.Option(..., help="Semantic version, e.g. v1.0.0."),
    name: str = typer.Option(..., help="Display name."),
    public: bool = typer.Option(False, "--public", help="Publicly visible."),
    main_flag: bool = typer.Option(False, "--main", help="Make this the main version."),
) -> None:
    """Create a version."""
    created = _run(
        "version create",
        lambda graph, objects: versions_repo.create_version(
            graph, version=version, name=name, is_public=public, is_main=main_flag
        ),
    )
    typer.echo(f"[version create] Created version: {created.id}  {created.version}  main={created.is_main}")


@version_app.command("nav")
def version_nav(
    version_id: str = typer.Argument(..., help="Version ID."),
    visible_only: bool = typer.Option(False, "--visible-only", help="Hide invisible pages."),
) -> None:
    """Print the navigation tree of a version."""
    tree = _run(
        "version nav",
        lambda graph, objects: build_navigation(graph, version_id, visible_only=visible_only),
    )
    if tree is None:
        typer.echo(f"[version nav] Version not found: {version_id}", err=True)
        raise typer.Exit(1)
    typer.echo(render_navigation(tree, title=version_id))


# ---------------------------------------------------------------------------
# page
# ---------------------------------------------------------------------------
page_app = typer.Typer(help="Pages inside a version.", no_args_is_help=True)
app.add_typer(page_app, name="page")


@page_app.command("create")
def page_create(
    version_id: str = typer.Option(..., "--version", help="Version ID."),
    slug: str = typer.Option(..., help="URL slug."),
    title: str = typer.Option(..., help="Page title."),
    parent: Optional[str] = typer.Option(None, help="Parent page ID."),
    order: int = typer.Option(0, help="Position among siblings."),
    visible: bool = typer.Option(False, "--visible", help="Show on the public site."),
) -> None:
    """Create a page in a version."""
    page = _run(
        "page create",
        lambda graph, objects: pages_repo.create_page(
            graph,
            slug=slug,
            title=title,
            version_id=version_id,
            parent_page_id=parent,
            order=order,
            visible=visible,
        ),
    )
    typer.echo(f"[page create] Created page: {page.id}  slug={page.slug!r}")


@page_app.command("display")
def page_display(
    page_id: str = typer.Argument(..., help="Page ID."),
    document_id: str = typer.Argument(..., help="Document ID."),
) -> None:
    """Show a document on a page."""
    _run("page display", lambda graph, objects: pages_repo.link_document(graph, page_id, document_id))
    typer.echo(f"[page display] {page_id[:8]} DISPLAYS {document_id[:8]}")


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------
@app.command("search")
def search(
    query: str = typer.Argument(..., help="Search query."),
    version_id: Optional[str] = typer.Option(None, "--version", help="Restrict to a version."),
    tag: Optional[list[str]] = typer.Option(None, "--tag", help="Restrict to tag names (repeatable)."),
    limit: int = typer.Option(settings.search_default_limit, help="Maximum results."),
) -> None:
    """Search documents by keyword."""

    async def _search(graph: GraphStore, objects: ObjectStore) -> Any:
        return await run_search(
            SqliteRanker(graph), query, version_id=version_id, tags=tag or None, limit=limit
        )

    response = _run("search", _search)
    if not response.results:
        typer.echo(f"[search] No results for {query!r}.")
        return
    for r in response.results:
        fields = ",".join(r.matched_fields)
        typer.echo(f"  {r.relevance_score:8.3f}  {r.document_id}  {r.title!r}  [{fields}]")
    typer.echo(f"  ({len(response.results)} of {response.total})")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
