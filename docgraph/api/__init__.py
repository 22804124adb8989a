"""HTTP API.  Serve with ``uvicorn docgraph.api:app``."""

from docgraph.api.app import app

__all__ = ["app"]
