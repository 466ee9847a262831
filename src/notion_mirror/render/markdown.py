"""Markdown rendering of pages, databases, comments and block trees.

Blocks are rendered as a fold over each sibling sequence. The only state
carried between siblings is whether the previous block was a list item: the
first non-list block after a run of list items gets one extra newline so the
list is closed before flow text resumes. Children are rendered by the same
fold at a level that depends on the parent (nested list items indent, other
containers continue at level 0 or at the parent's level).

Media URLs are replaced with local paths when the caller supplies a map of
downloaded assets; the renderer never fetches anything itself.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace

from pydantic import BaseModel

from notion_mirror.models.base import NotionItem
from notion_mirror.models.blocks import (
    Block,
    BlockType,
    CalloutContent,
    ChildTitleContent,
    CodeContent,
    EquationContent,
    HeadingContent,
    LinkContent,
    LinkToPageContent,
    MediaContent,
    RichTextContent,
    TableContent,
    TableRowContent,
    ToDoContent,
)
from notion_mirror.models.common import Color, RichText, plain_text
from notion_mirror.models.items import Comment, Database, Page
from notion_mirror.models.properties import PropertyKind
from notion_mirror.render.properties import format_property_value

logger = logging.getLogger(__name__)

DEFAULT_CALLOUT_ICON = "ℹ️"

_MEDIA_LABELS = {
    BlockType.VIDEO: "Video",
    BlockType.AUDIO: "Audio",
    BlockType.FILE: "File",
    BlockType.PDF: "PDF",
}


class DownloadedAsset(BaseModel):
    """A media file saved locally by an asset downloader."""

    original_url: str
    local_path: str


@dataclass(frozen=True)
class RenderState:
    """State threaded between sibling blocks."""

    level: int = 0
    previous_was_list_item: bool = False


def notion_url(object_id: str) -> str:
    """Web URL of a page, database or block."""
    return "https://www.notion.so/" + object_id.replace("-", "")


def _advance(state: RenderState, item: NotionItem) -> tuple[str, RenderState]:
    """Step the list-run tracker; returns the separator to emit before ``item``."""
    is_list_item = isinstance(item, Block) and item.is_list_item
    separator = "\n" if state.previous_was_list_item and not is_list_item else ""
    return separator, replace(state, previous_was_list_item=is_list_item)


class MarkdownRenderer:
    """Render Notion items to markdown.

    Args:
        level: Indentation level for top-level list items.
        ignore_color: Drop ``<span style="color: ...">`` wrappers.
        ignore_underline: Drop ``<u>`` wrappers.
        assets: Downloaded media keyed by original URL.
    """

    def __init__(
        self,
        *,
        level: int = 0,
        ignore_color: bool = False,
        ignore_underline: bool = False,
        assets: Mapping[str, DownloadedAsset] | None = None,
    ) -> None:
        self.level = level
        self.ignore_color = ignore_color
        self.ignore_underline = ignore_underline
        self.assets = dict(assets or {})
        self._block_renderers: dict[str, Callable[[Block, int], str]] = {
            BlockType.PARAGRAPH: self._paragraph,
            BlockType.HEADING_1: self._heading,
            BlockType.HEADING_2: self._heading,
            BlockType.HEADING_3: self._heading,
            BlockType.BULLETED_LIST_ITEM: self._list_item,
            BlockType.NUMBERED_LIST_ITEM: self._list_item,
            BlockType.TO_DO: self._list_item,
            BlockType.TOGGLE: self._toggle,
            BlockType.CODE: self._code,
            BlockType.QUOTE: self._quote,
            BlockType.CALLOUT: self._callout,
            BlockType.DIVIDER: lambda block, level: "---\n",
            BlockType.IMAGE: self._image,
            BlockType.VIDEO: self._media_link,
            BlockType.AUDIO: self._media_link,
            BlockType.FILE: self._media_link,
            BlockType.PDF: self._media_link,
            BlockType.BOOKMARK: self._link,
            BlockType.EMBED: self._link,
            BlockType.LINK_PREVIEW: self._link,
            BlockType.EQUATION: self._equation,
            BlockType.CHILD_PAGE: self._child_link,
            BlockType.CHILD_DATABASE: self._child_link,
            BlockType.LINK_TO_PAGE: self._link_to_page,
            BlockType.COLUMN_LIST: self._columns,
            BlockType.COLUMN: self._container,
            BlockType.SYNCED_BLOCK: self._container,
            BlockType.TABLE: self._table,
            BlockType.TABLE_ROW: self._lone_table_row,
            BlockType.TABLE_OF_CONTENTS: lambda block, level: "",
            BlockType.BREADCRUMB: lambda block, level: "",
            BlockType.TEMPLATE: self._paragraph,
        }

    def render(self, items: Sequence[NotionItem]) -> str:
        """Render pages, databases, comments and blocks in order."""
        return self._fold(items, self.level)

    def render_rich_text(self, runs: Sequence[RichText]) -> str:
        return "".join(self._rich_text_run(run) for run in runs)

    # --- Fold ---

    def _fold(self, items: Sequence[NotionItem], level: int) -> str:
        state = RenderState(level=level)
        parts: list[str] = []
        for item in items:
            separator, state = _advance(state, item)
            parts.append(separator)
            parts.append(self._render_item(item, state.level))
        return "".join(parts)

    def _render_item(self, item: NotionItem, level: int) -> str:
        if isinstance(item, Block):
            return self._block(item, level)
        if isinstance(item, Page):
            return self._page(item)
        if isinstance(item, Database):
            return self._database(item)
        if isinstance(item, Comment):
            return self._comment(item)
        logger.debug("No markdown form for %s %s", item.object, item.id)
        return ""

    def _block(self, block: Block, level: int) -> str:
        render = self._block_renderers.get(block.type)
        if render is None or not block.is_supported:
            return f"Unsupported block type: {block.type}\n"
        return render(block, level)

    def _children(self, block: Block, level: int) -> str:
        return self._fold(block.children, level)

    # --- Rich text ---

    def _rich_text_run(self, run: RichText) -> str:
        text = run.plain_text
        annotations = run.annotations
        if annotations.bold:
            text = f"**{text}**"
        if annotations.italic:
            text = f"_{text}_"
        if annotations.strikethrough:
            text = f"~~{text}~~"
        if annotations.code:
            text = f"`{text}`"
        if annotations.underline and not self.ignore_underline:
            text = f"<u>{text}</u>"
        if annotations.color != Color.DEFAULT and not self.ignore_color:
            text = f'<span style="color: {annotations.color.value}">{text}</span>'
        if run.href:
            text = f"[{text}]({run.href})"
        return text

    def _caption_suffix(self, caption: Sequence[RichText]) -> str:
        rendered = self.render_rich_text(caption)
        return "\n" + rendered if rendered else ""

    # --- Root items ---

    def _page(self, page: Page) -> str:
        title = self.render_rich_text(page.title) or "Untitled"
        lines = []
        for name, prop in page.sorted_properties():
            if prop.kind == PropertyKind.TITLE:
                continue
            value = format_property_value(prop)
            if value is not None:
                lines.append(f"- **{name}**: {value}\n")
        listing = "".join(lines) + "\n" if lines else ""
        return f"# {title}\n\n{listing}"

    def _database(self, database: Database) -> str:
        title = self.render_rich_text(database.title) or "Untitled"
        out = f"# {title}\n\n"
        description = self.render_rich_text(database.description_text)
        if description:
            out += description + "\n\n"
        if database.properties:
            rows = [
                f"| {name} | {prop.kind_name} |\n"
                for name, prop in database.sorted_properties()
            ]
            out += "| Property | Type |\n| --- | --- |\n" + "".join(rows) + "\n"
        return out

    def _comment(self, comment: Comment) -> str:
        author = comment.created_by.id if comment.created_by else "unknown"
        when = comment.created_time.isoformat().replace("+00:00", "Z") if comment.created_time else ""
        byline = " ".join(part for part in (author, when) if part)
        return f"_{byline}_\n\n{self.render_rich_text(comment.rich_text)}\n\n"

    # --- Text blocks ---

    def _paragraph(self, block: Block, level: int) -> str:
        content: RichTextContent = block.content
        return self.render_rich_text(content.rich_text) + "\n\n" + self._children(block, 0)

    def _heading(self, block: Block, level: int) -> str:
        content: HeadingContent = block.content
        depth = int(block.type[-1])
        heading = "#" * depth + " " + self.render_rich_text(content.rich_text) + "\n\n"
        return heading + self._children(block, 0)

    def _list_item(self, block: Block, level: int) -> str:
        content: RichTextContent = block.content
        if isinstance(content, ToDoContent):
            marker = "- [x] " if content.checked else "- [ ] "
        elif block.type == BlockType.NUMBERED_LIST_ITEM:
            marker = "1. "
        else:
            marker = "- "
        line = " " * (level * 4) + marker + self.render_rich_text(content.rich_text) + "\n"
        return line + self._children(block, level + 1)

    def _toggle(self, block: Block, level: int) -> str:
        content: RichTextContent = block.content
        summary = self.render_rich_text(content.rich_text)
        return f"<details><summary>{summary}</summary>\n\n" + self._children(block, level) + "</details>\n\n"

    def _code(self, block: Block, level: int) -> str:
        content: CodeContent = block.content
        caption = self.render_rich_text(content.caption)
        if caption:
            caption += "\n\n"
        fence = f"```{content.language}\n{plain_text(content.rich_text)}\n```\n\n"
        return fence + caption + self._children(block, level)

    def _blockquote(self, text: str, children: str) -> str:
        if not children:
            return "> " + text.replace("\n", "\n> ") + "\n\n"
        quoted = text + "\n\n" + children
        trimmed = quoted.rstrip("\n")
        trailing = len(quoted) - len(trimmed)
        # Round the trailing newline run up to an even count.
        newlines = "\n" * ((trailing + 1) // 2 * 2)
        return "> " + trimmed.replace("\n", "\n> ") + newlines

    def _quote(self, block: Block, level: int) -> str:
        content: RichTextContent = block.content
        return self._blockquote(self.render_rich_text(content.rich_text), self._children(block, 0))

    def _callout(self, block: Block, level: int) -> str:
        content: CalloutContent = block.content
        icon = content.icon.emoji if content.icon and content.icon.emoji else DEFAULT_CALLOUT_ICON
        text = f"{icon} {self.render_rich_text(content.rich_text)}"
        return self._blockquote(text, self._children(block, 0))

    def _equation(self, block: Block, level: int) -> str:
        content: EquationContent = block.content
        return f"$$\n{content.expression}\n$$\n\n"

    # --- Media and links ---

    def _asset_path(self, url: str) -> str:
        asset = self.assets.get(url)
        return asset.local_path if asset else url

    def _image(self, block: Block, level: int) -> str:
        content: MediaContent = block.content
        if not content.url:
            return f"Unsupported block type: {block.type}\n"
        target = self._asset_path(content.url)
        return f"![{block.id}]({target}){self._caption_suffix(content.caption)}\n\n"

    def _media_link(self, block: Block, level: int) -> str:
        content: MediaContent = block.content
        if not content.url:
            return f"Unsupported block type: {block.type}\n"
        label = _MEDIA_LABELS[BlockType(block.type)]
        name = content.name or content.url
        target = self._asset_path(content.url)
        return f"{label}: [{name}]({target}){self._caption_suffix(content.caption)}\n\n"

    def _link(self, block: Block, level: int) -> str:
        content: LinkContent = block.content
        return f"[{content.url}]({content.url}){self._caption_suffix(content.caption)}\n\n"

    def _child_link(self, block: Block, level: int) -> str:
        content: ChildTitleContent = block.content
        return f"[{content.title or 'Untitled'}]({notion_url(block.id)})\n\n"

    def _link_to_page(self, block: Block, level: int) -> str:
        content: LinkToPageContent = block.content
        target = content.target_id
        if target is None:
            return f"Unsupported block type: {block.type}\n"
        label = "Linked database" if content.database_id else "Linked page"
        return f"[{label}]({notion_url(target)})\n\n"

    # --- Layout ---

    def _container(self, block: Block, level: int) -> str:
        return self._children(block, level)

    def _columns(self, block: Block, level: int) -> str:
        return "".join(self._children(column, level) for column in block.children)

    def _table_row(self, row: Block, row_index: int, table: TableContent | None) -> str:
        content: TableRowContent = row.content
        cells = []
        for column_index, cell in enumerate(content.cells):
            is_header = table is not None and (
                (table.has_column_header and row_index == 0) or (table.has_row_header and column_index == 0)
            )
            tag = "th" if is_header else "td"
            text = self.render_rich_text(cell).replace("\n", "<br>")
            cells.append(f"<{tag}>{text}</{tag}>")
        return "<tr>" + "".join(cells) + "</tr>\n"

    def _table(self, block: Block, level: int) -> str:
        content: TableContent = block.content
        rows = [child for child in block.children if isinstance(child.content, TableRowContent)]
        body = "".join(self._table_row(row, index, content) for index, row in enumerate(rows))
        return "<table>\n" + body + "</table>\n\n"

    def _lone_table_row(self, block: Block, level: int) -> str:
        return "<table>\n" + self._table_row(block, 0, None) + "</table>\n\n"
