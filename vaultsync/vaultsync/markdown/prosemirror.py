"""Content-tree (ProseMirror JSON) to markdown conversion."""

from __future__ import annotations

import re
from typing import Any


def is_content_tree(tree: Any) -> bool:
    """True for a `{"type": "doc", "content": [...]}` root."""
    return isinstance(tree, dict) and tree.get("type") == "doc" and isinstance(tree.get("content"), list)


def convert_prosemirror_to_markdown(tree: Any) -> str:
    """Render a content tree as markdown. Pure; "" for anything but a doc root."""
    if not is_content_tree(tree):
        return ""
    output = "".join(_render(node, 0, top_level=True) for node in tree["content"])
    output = re.sub(r"\n{3,}", "\n\n", output)
    return output.rstrip() + "\n"


def _children(node: dict) -> list:
    content = node.get("content")
    return content if isinstance(content, list) else []


def _render(node: Any, indent: int, top_level: bool = False) -> str:
    if not isinstance(node, dict):
        return ""
    node_type = node.get("type")

    if node_type == "text":
        return str(node.get("text") or "")

    if node_type == "heading":
        attrs = node.get("attrs") or {}
        level = attrs.get("level") if isinstance(attrs.get("level"), int) else 1
        text = "".join(_render(child, indent) for child in _children(node)).strip()
        return f"{'#' * level} {text}" + ("\n\n" if top_level else "\n")

    if node_type == "paragraph":
        text = "".join(_render(child, indent) for child in _children(node))
        return text + ("\n\n" if top_level else "")

    if node_type == "bulletList":
        items = [_render_list_item(item, indent) for item in _children(node)]
        items = [item for item in items if item]
        return "\n".join(items) + ("\n\n" if top_level else "")

    if node_type == "listItem":
        return _render_list_item(node, indent)

    if "content" in node:
        return "".join(_render(child, indent) for child in _children(node))
    return str(node.get("text") or "")


def _render_list_item(item: Any, indent: int) -> str:
    if not isinstance(item, dict) or item.get("type") != "listItem":
        return ""
    text_parts: list[str] = []
    nested: list[str] = []
    for child in _children(item):
        if isinstance(child, dict) and child.get("type") == "bulletList":
            nested.append("\n" + _render(child, indent + 1))
        else:
            text_parts.append(_render(child, indent))
    first = text_parts[0] if text_parts else ""
    prefix = "\t" * indent
    return f"{prefix}- {first.strip()}" + "".join(nested)
