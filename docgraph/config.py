"""Runtime settings for docgraph.

Every knob reads an environment variable once, when :data:`settings` is
built.  A ``.env`` file at the repository root is loaded first and never
overrides variables already present in the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_PACKAGE_DIR = Path(__file__).resolve().parent

load_dotenv(_PACKAGE_DIR.parent / ".env", override=False)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


@dataclass
class Settings:
    # Storage. The graph database and the document bodies share one root.
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("DOCGRAPH_WORKSPACE", Path.home() / ".docgraph_data")
        )
    )
    sqlite_busy_timeout_ms: int = field(
        default_factory=lambda: _env_int("DOCGRAPH_BUSY_TIMEOUT_MS", 5000)
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON"))

    # Upper bound on hops when walking concept hierarchies or page ancestry.
    relation_max_depth: int = field(default_factory=lambda: _env_int("RELATION_MAX_DEPTH", 32))

    # Listing and search windows
    search_default_limit: int = field(default_factory=lambda: _env_int("SEARCH_DEFAULT_LIMIT", 20))
    page_max_limit: int = field(default_factory=lambda: _env_int("PAGE_MAX_LIMIT", 100))

    @property
    def db_path(self) -> Path:
        return self.workspace_dir / "graph.db"

    @property
    def content_dir(self) -> Path:
        """Object-store root; one directory per document id below ``documents/``."""
        return self.workspace_dir / "content"

    @property
    def schema_path(self) -> Path:
        return _PACKAGE_DIR / "db" / "schema.sql"

    def ensure_workspace(self) -> None:
        for directory in (self.workspace_dir, self.content_dir):
            directory.mkdir(parents=True, exist_ok=True)


settings = Settings()
