"""Health check.

Routes
------
GET /health    ``{"status": "ok", "database": "ok", "schema_version": n}``
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from docgraph.db.migrations import current_version

router = APIRouter()


@router.get("")
async def health(request: Request) -> dict[str, Any]:
    version = await request.app.state.graph.run(current_version)
    return {"status": "ok", "database": "ok", "schema_version": version}
