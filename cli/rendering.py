"""Utilities for rendering graph structures in the CLI."""

from __future__ import annotations

from docgraph.models import NavigationItem, NavigationTree


def _visibility(item: NavigationItem) -> str:
    return "" if item.visible else " (hidden)"


def _document(item: NavigationItem) -> str:
    return f"  -> doc {item.document_id[:8]}" if item.document_id else ""


def render_navigation(tree: NavigationTree, title: str = "") -> str:
    """Render a version's page forest as an ASCII tree.

    Example::

        v1.0.0
        ├── [0] intro  Introduction
        │   └── [0] install  Installation (hidden)
        └── [1] api  API Reference  -> doc 1b2c3d4e
    """
    lines: list[str] = [title] if title else []
    if not tree.pages:
        lines.append("(no pages)")
        return "\n".join(lines)

    # Explicit stack of (item, prefix, is_last) keeps deep trees off the recursion limit.
    stack = [(item, "", i == len(tree.pages) - 1) for i, item in enumerate(tree.pages)]
    stack.reverse()
    while stack:
        item, prefix, is_last = stack.pop()
        connector = "└── " if is_last else "├── "
        lines.append(
            f"{prefix}{connector}[{item.order}] {item.slug}  {item.title}"
            f"{_visibility(item)}{_document(item)}"
        )
        child_prefix = prefix + ("    " if is_last else "│   ")
        count = len(item.children)
        for i, child in reversed(list(enumerate(item.children))):
            stack.append((child, child_prefix, i == count - 1))

    return "\n".join(lines)
