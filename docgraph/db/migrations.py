"""Schema bootstrap and versioned migrations for the graph database.

``schema.sql`` holds the baseline (nodes, edges, the FTS index and its
triggers).  Later changes go into :data:`MIGRATIONS` as ``(version, sql)``
pairs, one statement per entry; each runs once inside its own transaction
and is recorded in ``schema_version``.
"""

from __future__ import annotations

import sqlite3

from docgraph.config import settings
from docgraph.log import get_logger

logger = get_logger(__name__)

MIGRATIONS: list[tuple[int, str]] = []

_VERSION_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_version (
        version    INTEGER PRIMARY KEY,
        applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
    )
"""


def init_db(conn: sqlite3.Connection) -> None:
    """Apply the baseline schema, then any pending migrations.

    Safe on an existing database: the baseline only uses ``IF NOT EXISTS``.
    """
    # executescript commits first and handles the trigger bodies.
    conn.executescript(settings.schema_path.read_text(encoding="utf-8"))
    with conn:
        conn.execute(_VERSION_TABLE)
    migrate(conn)


def current_version(conn: sqlite3.Connection) -> int:
    """Highest recorded migration, ``0`` for a baseline-only database."""
    (version,) = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version").fetchone()
    return version


def migrate(conn: sqlite3.Connection) -> int:
    """Run every migration newer than :func:`current_version`.

    Returns:
        The schema version afterwards.
    """
    version = current_version(conn)
    for target, sql in sorted(MIGRATIONS):
        if target <= version:
            continue
        with conn:
            conn.execute(sql)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (target,))
        logger.info("migration applied", version=target)
        version = target
    return version
