"""Tests for concept impact analysis."""

from __future__ import annotations

from docgraph.engines.impact import get_impact
from docgraph.repositories.concepts import create_concept
from docgraph.repositories.documents import create_document, link_concept, unlink_concept


async def test_missing_concept(graph):
    assert await get_impact(graph, "missing") is None


async def test_unused_concept(graph):
    concept = await create_concept(graph, term="API", description="x", lang="en")
    report = await get_impact(graph, concept.id)
    assert report.items == []
    assert report.total == 0


async def test_lists_every_user(graph, objects):
    concept = await create_concept(graph, term="API", description="x", lang="en")
    first = await create_document(graph, objects, title="REST guide", type="tutorial", content="...", lang="en")
    second = await create_document(graph, objects, title="Reference", type="api", content="...", lang="en")
    await create_document(graph, objects, title="Unrelated", type="general", content="...", lang="en")
    await link_concept(graph, first.id, concept.id)
    await link_concept(graph, second.id, concept.id)

    report = await get_impact(graph, concept.id)
    assert report.total == 2
    assert {d.id for d in report.items} == {first.id, second.id}
    by_id = {d.id: d for d in report.items}
    assert by_id[first.id].title == "REST guide"
    assert by_id[second.id].type.value == "api"

    await unlink_concept(graph, first.id, concept.id)
    assert (await get_impact(graph, concept.id)).total == 1
