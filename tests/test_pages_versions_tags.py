"""Tests for the page, version and tag repositories."""

from __future__ import annotations

import pytest

from docgraph.errors import ConflictError, NotFoundError, ValidationError
from docgraph.repositories import pages, tags, versions
from docgraph.repositories.concepts import create_concept
from docgraph.repositories.documents import create_document


@pytest.fixture()
async def version(graph):
    return await versions.create_version(graph, version="v1.0.0", name="First", is_main=True)


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

class TestVersions:
    async def test_invalid_version_string(self, graph):
        with pytest.raises(ValidationError):
            await versions.create_version(graph, version="1.0", name="x")

    async def test_single_main_on_create(self, graph, version):
        second = await versions.create_version(graph, version="v2.0.0", name="Second", is_main=True)
        assert (await versions.get_main_version(graph)).id == second.id
        assert (await versions.get_version(graph, version.id)).is_main is False

    async def test_single_main_on_update(self, graph, version):
        second = await versions.create_version(graph, version="v2.0.0", name="Second")
        await versions.update_version(graph, second.id, is_main=True)
        _, total = await versions.list_versions(graph)
        assert total == 2
        mains = [v for v in (await versions.list_versions(graph))[0] if v.is_main]
        assert [v.id for v in mains] == [second.id]

    async def test_no_main(self, graph):
        assert await versions.get_main_version(graph) is None

    async def test_list_public(self, graph, version):
        await versions.create_version(graph, version="v2.0.0", name="Public", is_public=True)
        items, total = await versions.list_versions(graph, is_public=True)
        assert total == 1
        assert items[0].name == "Public"

    async def test_delete_orphans_pages(self, graph, version):
        page = await pages.create_page(graph, slug="intro", title="Intro", version_id=version.id)
        assert await versions.delete_version(graph, version.id) is True
        assert (await pages.get_page(graph, page.id)).version_id is None


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

class TestPages:
    async def test_create_child(self, graph, version):
        parent = await pages.create_page(graph, slug="guide", title="Guide", version_id=version.id)
        child = await pages.create_page(
            graph, slug="setup", title="Setup", version_id=version.id, parent_page_id=parent.id, order=3
        )
        fetched = await pages.get_page(graph, child.id)
        assert fetched.parent_page_id == parent.id
        assert fetched.version_id == version.id
        assert fetched.order == 3
        assert fetched.visible is False

    @pytest.mark.parametrize("slug", ["Getting Started", "under_score", ""])
    async def test_invalid_slug(self, graph, version, slug):
        with pytest.raises(ValidationError):
            await pages.create_page(graph, slug=slug, title="x", version_id=version.id)

    async def test_negative_order(self, graph, version):
        with pytest.raises(ValidationError):
            await pages.create_page(graph, slug="a", title="x", version_id=version.id, order=-1)

    async def test_missing_version(self, graph):
        with pytest.raises(NotFoundError):
            await pages.create_page(graph, slug="a", title="x", version_id="missing")

    async def test_parent_must_share_version(self, graph, version):
        other = await versions.create_version(graph, version="v2.0.0", name="Other")
        foreign = await pages.create_page(graph, slug="a", title="x", version_id=other.id)
        with pytest.raises(ValidationError, match="same version"):
            await pages.create_page(graph, slug="b", title="y", version_id=version.id, parent_page_id=foreign.id)

    async def test_delete_promotes_children(self, graph, version):
        parent = await pages.create_page(graph, slug="p", title="P", version_id=version.id)
        child = await pages.create_page(graph, slug="c", title="C", version_id=version.id, parent_page_id=parent.id)
        assert await pages.delete_page(graph, parent.id) is True
        assert (await pages.get_page(graph, child.id)).parent_page_id is None

    async def test_list_by_version(self, graph, version):
        await pages.create_page(graph, slug="a", title="A", version_id=version.id, visible=True)
        await pages.create_page(graph, slug="b", title="B", version_id=version.id)
        items, total = await pages.list_pages(graph, version_id=version.id, visible=True)
        assert total == 1
        assert items[0].slug == "a"
        _, total = await pages.list_pages(graph)
        assert total == 2

    async def test_link_document_replaces(self, graph, objects, version):
        page = await pages.create_page(graph, slug="a", title="A", version_id=version.id)
        first = await create_document(graph, objects, title="1", type="general", content="", lang="en")
        second = await create_document(graph, objects, title="2", type="general", content="", lang="en")
        await pages.link_document(graph, page.id, first.id)
        linked = await pages.link_document(graph, page.id, second.id)
        assert linked.document_id == second.id

        await pages.unlink_document(graph, page.id)
        assert (await pages.get_page(graph, page.id)).document_id is None
        with pytest.raises(NotFoundError):
            await pages.unlink_document(graph, page.id)

    async def test_move(self, graph, version):
        a = await pages.create_page(graph, slug="a", title="A", version_id=version.id)
        b = await pages.create_page(graph, slug="b", title="B", version_id=version.id)
        moved = await pages.move_page(graph, b.id, a.id, order=4)
        assert moved.parent_page_id == a.id
        assert moved.order == 4
        root = await pages.move_page(graph, b.id, None)
        assert root.parent_page_id is None

    async def test_move_under_descendant_is_rejected(self, graph, version):
        a = await pages.create_page(graph, slug="a", title="A", version_id=version.id)
        b = await pages.create_page(graph, slug="b", title="B", version_id=version.id, parent_page_id=a.id)
        c = await pages.create_page(graph, slug="c", title="C", version_id=version.id, parent_page_id=b.id)
        with pytest.raises(ValidationError, match="descendant"):
            await pages.move_page(graph, a.id, c.id)
        with pytest.raises(ValidationError):
            await pages.move_page(graph, a.id, a.id)
        assert (await pages.get_page(graph, a.id)).parent_page_id is None

    async def test_move_with_bad_order_changes_nothing(self, graph, version):
        a = await pages.create_page(graph, slug="a", title="A", version_id=version.id)
        b = await pages.create_page(graph, slug="b", title="B", version_id=version.id)
        with pytest.raises(ValidationError):
            await pages.move_page(graph, b.id, a.id, order=-2)
        assert (await pages.get_page(graph, b.id)).parent_page_id is None


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

class TestTags:
    async def test_unique_names(self, graph):
        await tags.create_tag(graph, name="beta")
        with pytest.raises(ConflictError):
            await tags.create_tag(graph, name="beta")

    async def test_rename_conflict(self, graph):
        beta = await tags.create_tag(graph, name="beta")
        await tags.create_tag(graph, name="stable")
        with pytest.raises(ConflictError):
            await tags.update_tag(graph, beta.id, name="stable")
        renamed = await tags.update_tag(graph, beta.id, name="beta", color="#ff0000")
        assert renamed.color == "#ff0000"

    async def test_list_by_name(self, graph):
        await tags.create_tag(graph, name="Beta")
        await tags.create_tag(graph, name="stable")
        items, total = await tags.list_tags(graph, name="bet")
        assert total == 1
        assert items[0].name == "Beta"

    async def test_attach_and_group(self, graph, objects, version):
        tag = await tags.create_tag(graph, name="beta")
        doc = await create_document(graph, objects, title="d", type="general", content="", lang="en")
        concept = await create_concept(graph, term="c", description="", lang="en")
        page = await pages.create_page(graph, slug="p", title="P", version_id=version.id)
        for entity_id in (doc.id, concept.id, page.id):
            await tags.attach_tag(graph, entity_id, tag.id)
        await tags.attach_tag(graph, doc.id, tag.id)

        grouped = await tags.get_tagged_entities(graph, tag.id)
        assert [n.id for n in grouped["documents"]] == [doc.id]
        assert [n.id for n in grouped["concepts"]] == [concept.id]
        assert [n.id for n in grouped["pages"]] == [page.id]
        assert [t.name for t in await tags.get_entity_tags(graph, doc.id)] == ["beta"]

        await tags.detach_tag(graph, doc.id, tag.id)
        assert await tags.get_entity_tags(graph, doc.id) == []
        with pytest.raises(NotFoundError):
            await tags.detach_tag(graph, doc.id, tag.id)

    async def test_versions_cannot_be_tagged(self, graph, version):
        tag = await tags.create_tag(graph, name="beta")
        with pytest.raises(NotFoundError):
            await tags.attach_tag(graph, version.id, tag.id)
