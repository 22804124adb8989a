"""Opening the graph database.

The store keeps one connection per process and hands it to worker threads
under its own lock, so the connection is created without SQLite's
same-thread check.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional, Union

from docgraph.config import settings

MEMORY = ":memory:"

_PRAGMAS = (
    # Deleting a node removes its edges.
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)


def get_connection(db_path: Optional[Union[Path, str]] = None) -> sqlite3.Connection:
    """Return a connection to *db_path* (default ``settings.db_path``).

    ``":memory:"`` gives a private database and leaves the workspace alone;
    any file path creates the workspace directories first.  Rows come back
    as :class:`sqlite3.Row`.
    """
    target = str(db_path or settings.db_path)
    if target != MEMORY:
        settings.ensure_workspace()

    conn = sqlite3.connect(
        target,
        timeout=settings.sqlite_busy_timeout_ms / 1000,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    return conn
