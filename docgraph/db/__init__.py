"""SQLite persistence for the node/edge graph and its full-text index."""

from docgraph.db.connection import get_connection
from docgraph.db.migrations import current_version, init_db

__all__ = ["current_version", "get_connection", "init_db"]
