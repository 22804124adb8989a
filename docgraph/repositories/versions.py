"""Documentation version persistence.

At most one version is the main version: marking a version ``is_main``
clears the flag on every other version in the same call.
"""

from __future__ import annotations

from typing import Any, Optional

from docgraph.log import get_logger
from docgraph.models import VERSION, Version, validate_version
from docgraph.store.graph import GraphStore

logger = get_logger(__name__)


async def _clear_main(graph: GraphStore, keep_id: str) -> None:
    page = await graph.list_nodes(VERSION, {"is_main": True})
    for node in page.items:
        if node.id != keep_id:
            await graph.update_node(VERSION, node.id, {"is_main": False})
            logger.info("main version cleared", version_id=node.id, new_main_id=keep_id)


async def create_version(
    graph: GraphStore,
    *,
    version: str,
    name: str,
    is_public: bool = False,
    is_main: bool = False,
    description: Optional[str] = None,
) -> Version:
    validate_version(version)
    node = await graph.create_node(
        VERSION,
        {
            "version": version,
            "name": name,
            "description": description,
            "is_public": is_public,
            "is_main": is_main,
        },
    )
    if is_main:
        await _clear_main(graph, node.id)
    logger.info("version created", version_id=node.id, version=version, is_main=is_main)
    return Version.from_node(node)


async def get_version(graph: GraphStore, version_id: str) -> Optional[Version]:
    node = await graph.get_node(VERSION, version_id)
    return Version.from_node(node) if node else None


async def get_main_version(graph: GraphStore) -> Optional[Version]:
    page = await graph.list_nodes(VERSION, {"is_main": True}, limit=1)
    return Version.from_node(page.items[0]) if page.items else None


async def update_version(
    graph: GraphStore,
    version_id: str,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    is_public: Optional[bool] = None,
    is_main: Optional[bool] = None,
    expected_revision: Optional[int] = None,
) -> Optional[Version]:
    fields: dict[str, Any] = {}
    if name is not None:
        fields["name"] = name
    if description is not None:
        fields["description"] = description
    if is_public is not None:
        fields["is_public"] = is_public
    if is_main is not None:
        fields["is_main"] = is_main
    node = await graph.update_node(VERSION, version_id, fields, expected_revision=expected_revision)
    if node is None:
        return None
    if is_main:
        await _clear_main(graph, version_id)
    logger.info("version updated", version_id=version_id, fields=sorted(fields))
    return Version.from_node(node)


async def delete_version(graph: GraphStore, version_id: str) -> bool:
    deleted = await graph.delete_node(VERSION, version_id)
    if deleted:
        logger.info("version deleted", version_id=version_id)
    return deleted


async def list_versions(
    graph: GraphStore,
    *,
    is_public: Optional[bool] = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Version], int]:
    page = await graph.list_nodes(VERSION, {"is_public": is_public}, limit, offset)
    return [Version.from_node(n) for n in page.items], page.total
