"""Output formats for lists of Notion items.

Every renderer takes a flat sequence of items and returns one string. Block
trees are flattened first with ``flatten_items`` so nested content is listed
after its parent.
"""

import json
from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol

from notion_mirror.models.base import NotionItem
from notion_mirror.models.blocks import Block, BlockType
from notion_mirror.render.markdown import MarkdownRenderer

# Children of these blocks belong to the block itself (toggle body, sub-page,
# table rows) and are not listed as separate items.
_OPAQUE_CHILDREN = frozenset({BlockType.TOGGLE, BlockType.CHILD_PAGE, BlockType.TABLE})


class OutputFormat(str, Enum):
    ID = "id"
    JSON = "json"
    JSONL = "jsonl"
    SMALL_JSONL = "small_jsonl"
    MARKDOWN = "markdown"


class Renderer(Protocol):
    def render(self, items: Sequence[NotionItem]) -> str: ...


def flatten_items(items: Sequence[NotionItem]) -> list[NotionItem]:
    """Depth-first list of items and their block descendants."""
    flat: list[NotionItem] = []
    for item in items:
        flat.append(item)
        if isinstance(item, Block) and item.type not in _OPAQUE_CHILDREN:
            flat.extend(flatten_items(item.children))
    return flat


def item_to_json(item: NotionItem) -> dict[str, Any]:
    """Wire-shaped JSON object for ``item`` (block children excluded)."""
    return item.model_dump(mode="json", by_alias=True)


class IDRenderer:
    def render(self, items: Sequence[NotionItem]) -> str:
        return "\n".join(item.id for item in items)


class JSONRenderer:
    """Pretty-printed JSON array with sorted keys."""

    def render(self, items: Sequence[NotionItem]) -> str:
        return json.dumps([item_to_json(item) for item in items], indent=2, sort_keys=True, ensure_ascii=False)


class JSONLRenderer:
    """One full JSON object per line."""

    def render(self, items: Sequence[NotionItem]) -> str:
        return "\n".join(
            json.dumps(item_to_json(item), sort_keys=True, ensure_ascii=False, separators=(",", ":"))
            for item in items
        )


class SmallJSONLRenderer:
    """One ``{object, id, description, parent}`` summary per line."""

    def render(self, items: Sequence[NotionItem]) -> str:
        lines = []
        for item in items:
            summary: dict[str, Any] = {"object": item.object, "id": item.id, "description": item.description}
            if item.parent is not None:
                summary["parent"] = item.parent.to_wire()
            lines.append(json.dumps(summary, sort_keys=True, ensure_ascii=False, separators=(",", ":")))
        return "\n".join(lines)


def get_renderer(output_format: OutputFormat | str, **markdown_options: Any) -> Renderer:
    """Return the renderer for ``output_format``.

    Args:
        output_format: An ``OutputFormat`` or its string value.
        **markdown_options: Passed to ``MarkdownRenderer`` (``ignore_color``,
            ``ignore_underline``, ``assets``, ``level``).

    Raises:
        ValueError: Unknown format name.
    """
    output_format = OutputFormat(output_format)
    if output_format is OutputFormat.MARKDOWN:
        return MarkdownRenderer(**markdown_options)
    if output_format is OutputFormat.ID:
        return IDRenderer()
    if output_format is OutputFormat.JSON:
        return JSONRenderer()
    if output_format is OutputFormat.JSONL:
        return JSONLRenderer()
    return SmallJSONLRenderer()
