"""Object store for document bodies.

Objects are plain files under a root directory (``settings.content_dir`` by
default), addressed by slash-separated keys such as
``documents/<uuid>/content.md``.  The content type given to :meth:`put` is
kept in a small JSON sidecar next to the object.

File I/O runs on the default thread pool, like the graph adapter.
"""

from __future__ import annotations

import asyncio
import json
from functools import partial
from pathlib import Path
from typing import Any, Callable, TypeVar

from docgraph.errors import NotFoundError, ValidationError

T = TypeVar("T")

_META_SUFFIX = ".meta.json"


def storage_key_for(document_id: str) -> str:
    """Object key under which a document's body is stored."""
    return f"documents/{document_id}/content.md"


class ObjectStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        parts = key.split("/")
        if not key or key.startswith("/") or any(p in ("", ".", "..") for p in parts):
            raise ValidationError(f"Invalid object key: {key!r}")
        return self.root.joinpath(*parts)

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    # ------------------------------------------------------------------
    # Sync implementations
    # ------------------------------------------------------------------

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        Path(str(path) + _META_SUFFIX).write_text(
            json.dumps({"content_type": content_type, "size": len(data)}),
            encoding="utf-8",
        )

    def _get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise NotFoundError(f"Object not found: {key!r}")
        return path.read_bytes()

    def _head(self, key: str) -> dict[str, Any]:
        path = self._path(key)
        meta = Path(str(path) + _META_SUFFIX)
        if not path.is_file():
            raise NotFoundError(f"Object not found: {key!r}")
        if meta.is_file():
            return json.loads(meta.read_text(encoding="utf-8"))
        return {"content_type": "application/octet-stream", "size": path.stat().st_size}

    def _delete(self, key: str) -> None:
        path = self._path(key)
        path.unlink(missing_ok=True)
        Path(str(path) + _META_SUFFIX).unlink(missing_ok=True)

    def _exists(self, key: str) -> bool:
        return self._path(key).is_file()

    # ------------------------------------------------------------------
    # Public async API
    # ------------------------------------------------------------------

    async def put(self, key: str, data: bytes, content_type: str = "text/markdown") -> None:
        await self._run(self._put, key, data, content_type)

    async def get(self, key: str) -> bytes:
        """Return the object's bytes.  Raises :class:`NotFoundError` if absent."""
        return await self._run(self._get, key)

    async def head(self, key: str) -> dict[str, Any]:
        """Return ``{"content_type", "size"}`` for an object."""
        return await self._run(self._head, key)

    async def delete(self, key: str) -> None:
        """Remove an object.  Deleting a missing key is a no-op."""
        await self._run(self._delete, key)

    async def exists(self, key: str) -> bool:
        return await self._run(self._exists, key)
