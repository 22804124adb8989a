"""Tests for navigation tree assembly."""

from __future__ import annotations

import pytest

from docgraph.engines.navigation import build_navigation
from docgraph.errors import ValidationError
from docgraph.repositories.documents import create_document
from docgraph.repositories.pages import create_page, link_document
from docgraph.repositories.versions import create_version


@pytest.fixture()
async def version(graph):
    return await create_version(graph, version="v1.0.0", name="First")


def _shape(items):
    return [(i.slug, _shape(i.children)) for i in items]


async def test_missing_version(graph):
    assert await build_navigation(graph, "missing") is None


async def test_empty_version(graph, version):
    tree = await build_navigation(graph, version.id)
    assert tree.pages == []
    assert tree.to_dict() == {"pages": []}


async def test_forest_is_ordered(graph, objects, version):
    intro = await create_page(graph, slug="intro", title="Intro", version_id=version.id, order=1, visible=True)
    guide = await create_page(graph, slug="guide", title="Guide", version_id=version.id, order=0, visible=True)
    await create_page(graph, slug="setup", title="Setup", version_id=version.id, parent_page_id=guide.id, order=2)
    await create_page(graph, slug="auth", title="Auth", version_id=version.id, parent_page_id=guide.id, order=1)
    doc = await create_document(graph, objects, title="Intro", type="general", content="hi", lang="en")
    await link_document(graph, intro.id, doc.id)

    tree = await build_navigation(graph, version.id)
    assert _shape(tree.pages) == [
        ("guide", [("auth", []), ("setup", [])]),
        ("intro", []),
    ]
    assert tree.pages[1].document_id == doc.id
    assert tree.pages[0].document_id is None

    payload = tree.to_dict()
    assert payload["pages"][0]["children"][0]["slug"] == "auth"
    assert payload["pages"][1]["document_id"] == doc.id


async def test_equal_order_puts_newest_first(graph, version):
    await create_page(graph, slug="older", title="Older", version_id=version.id)
    await create_page(graph, slug="newer", title="Newer", version_id=version.id)
    tree = await build_navigation(graph, version.id)
    assert [p.slug for p in tree.pages] == ["newer", "older"]


async def test_visible_only_prunes_subtrees(graph, version):
    shown = await create_page(graph, slug="shown", title="Shown", version_id=version.id, visible=True)
    hidden = await create_page(graph, slug="hidden", title="Hidden", version_id=version.id, order=1)
    await create_page(graph, slug="under-hidden", title="x", version_id=version.id, parent_page_id=hidden.id, visible=True)
    await create_page(graph, slug="under-shown", title="y", version_id=version.id, parent_page_id=shown.id, visible=False)

    everything = await build_navigation(graph, version.id)
    assert len(everything.pages) == 2

    visible = await build_navigation(graph, version.id, visible_only=True)
    assert _shape(visible.pages) == [("shown", [])]


async def test_versions_are_separate(graph, version):
    other = await create_version(graph, version="v2.0.0", name="Second")
    await create_page(graph, slug="a", title="A", version_id=version.id)
    await create_page(graph, slug="b", title="B", version_id=other.id)
    tree = await build_navigation(graph, other.id)
    assert [p.slug for p in tree.pages] == ["b"]


async def test_parent_in_another_version_makes_a_root(graph, version):
    other = await create_version(graph, version="v2.0.0", name="Second")
    foreign = await create_page(graph, slug="foreign", title="F", version_id=other.id)
    page = await create_page(graph, slug="local", title="L", version_id=version.id)
    await graph.create_edge("CHILD_OF", page.id, foreign.id)

    tree = await build_navigation(graph, version.id)
    assert [p.slug for p in tree.pages] == ["local"]


async def test_cyclic_hierarchy_is_reported(graph, version):
    a = await create_page(graph, slug="a", title="A", version_id=version.id)
    b = await create_page(graph, slug="b", title="B", version_id=version.id, parent_page_id=a.id)
    await graph.create_edge("CHILD_OF", a.id, b.id)

    with pytest.raises(ValidationError, match="cyclic"):
        await build_navigation(graph, version.id)
