"""Renderers turning Notion items into markdown, JSON and id listings."""

from notion_mirror.render.formats import (
    IDRenderer,
    JSONLRenderer,
    JSONRenderer,
    OutputFormat,
    Renderer,
    SmallJSONLRenderer,
    flatten_items,
    get_renderer,
    item_to_json,
)
from notion_mirror.render.markdown import DownloadedAsset, MarkdownRenderer, RenderState, notion_url
from notion_mirror.render.properties import format_property_value

__all__ = [
    "DownloadedAsset",
    "flatten_items",
    "format_property_value",
    "get_renderer",
    "IDRenderer",
    "item_to_json",
    "JSONLRenderer",
    "JSONRenderer",
    "MarkdownRenderer",
    "notion_url",
    "OutputFormat",
    "Renderer",
    "RenderState",
    "SmallJSONLRenderer",
]
