"""Tests for the async store adapters."""

from __future__ import annotations

import pytest

from docgraph.errors import ConflictError, NotFoundError, ValidationError
from docgraph.store import storage_key_for


class TestObjectStore:
    async def test_put_get_head(self, objects):
        key = storage_key_for("abc")
        await objects.put(key, "# Hello".encode("utf-8"))
        assert await objects.get(key) == b"# Hello"
        assert await objects.head(key) == {"content_type": "text/markdown", "size": 7}
        assert await objects.exists(key)

    async def test_overwrite(self, objects):
        await objects.put("a/b.md", b"one")
        await objects.put("a/b.md", b"second", "text/plain")
        assert await objects.get("a/b.md") == b"second"
        assert (await objects.head("a/b.md"))["content_type"] == "text/plain"

    async def test_missing_object(self, objects):
        with pytest.raises(NotFoundError):
            await objects.get("documents/nope/content.md")
        with pytest.raises(NotFoundError):
            await objects.head("documents/nope/content.md")

    async def test_delete_is_idempotent(self, objects):
        await objects.put("x.md", b"x")
        await objects.delete("x.md")
        await objects.delete("x.md")
        assert not await objects.exists("x.md")

    @pytest.mark.parametrize("key", ["", "/etc/passwd", "../escape.md", "a//b", "a/./b"])
    async def test_rejects_unsafe_keys(self, objects, key):
        with pytest.raises(ValidationError):
            await objects.put(key, b"x")

    def test_storage_key_layout(self):
        assert storage_key_for("1234") == "documents/1234/content.md"


class TestGraphStore:
    async def test_node_round_trip(self, graph):
        node = await graph.create_node("Tag", {"name": "beta"})
        assert (await graph.get_node("Tag", node.id)).get("name") == "beta"

    async def test_integrity_error_becomes_conflict(self, graph):
        await graph.create_node("Tag", {"name": "a"}, node_id="same")
        with pytest.raises(ConflictError):
            await graph.create_node("Tag", {"name": "b"}, node_id="same")

    async def test_run_executes_on_the_shared_connection(self, graph):
        row = await graph.run(lambda conn: conn.execute("SELECT COUNT(*) FROM nodes").fetchone())
        assert row[0] == 0
