"""Shared fixtures: an isolated in-memory graph and a temp-dir object store."""

from __future__ import annotations

import pytest

from docgraph.db.connection import get_connection
from docgraph.db.migrations import init_db
from docgraph.store import GraphStore, ObjectStore, SqliteRanker


@pytest.fixture()
def conn():
    """Fresh in-memory DB with the schema applied."""
    c = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(c)
    yield c
    c.close()


@pytest.fixture()
def graph(conn):
    return GraphStore(conn)


@pytest.fixture()
def objects(tmp_path):
    return ObjectStore(tmp_path / "content")


@pytest.fixture()
def ranker(graph):
    return SqliteRanker(graph)
