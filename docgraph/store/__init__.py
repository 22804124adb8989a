"""Async adapters over the graph store, the object store and search ranking."""

from docgraph.store.graph import GraphStore
from docgraph.store.objects import ObjectStore, storage_key_for
from docgraph.store.ranking import Ranker, SqliteRanker

__all__ = ["GraphStore", "ObjectStore", "Ranker", "SqliteRanker", "storage_key_for"]
