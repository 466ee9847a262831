"""Block envelope and per-type payloads.

A block on the wire is a fixed envelope (id, parent, timestamps, flags) plus a
payload stored under the key named by its ``type``. Payloads are decoded into
one ``BlockContent`` subclass per type; unknown types and payloads that do not
parse keep their raw JSON in ``UnsupportedContent`` and render as a visible
placeholder.

``Block.children`` is never read from or written to the wire. It is filled by
the tree builder through ``with_children``, which returns a new block.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import (
    Field,
    JsonValue,
    SerializerFunctionWrapHandler,
    ValidationError,
    model_serializer,
    model_validator,
)

from notion_mirror.models.base import NotionItem
from notion_mirror.models.common import (
    Color,
    ExternalFile,
    HostedFile,
    Icon,
    PartialUser,
    RichText,
    WireModel,
    plain_text,
)

logger = logging.getLogger(__name__)


class BlockType(str, Enum):
    """Block type tags with a dedicated payload model."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    CODE = "code"
    QUOTE = "quote"
    CALLOUT = "callout"
    DIVIDER = "divider"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"
    PDF = "pdf"
    BOOKMARK = "bookmark"
    EMBED = "embed"
    LINK_PREVIEW = "link_preview"
    EQUATION = "equation"
    LINK_TO_PAGE = "link_to_page"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    SYNCED_BLOCK = "synced_block"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_OF_CONTENTS = "table_of_contents"
    BREADCRUMB = "breadcrumb"
    TEMPLATE = "template"
    UNSUPPORTED = "unsupported"


LIST_ITEM_TYPES = frozenset(
    {BlockType.BULLETED_LIST_ITEM, BlockType.NUMBERED_LIST_ITEM, BlockType.TO_DO}
)


# --- Payloads ---


class BlockContent(WireModel):
    """Base class for a block's type-specific payload."""


class RichTextContent(BlockContent):
    """Paragraph, list items, quote, toggle and template."""

    rich_text: list[RichText] = Field(default_factory=list)
    color: Color = Color.DEFAULT


class HeadingContent(RichTextContent):
    is_toggleable: bool = False


class ToDoContent(RichTextContent):
    checked: bool = False


class CalloutContent(RichTextContent):
    icon: Icon | None = None


class CodeContent(BlockContent):
    rich_text: list[RichText] = Field(default_factory=list)
    caption: list[RichText] = Field(default_factory=list)
    language: str = "plain text"


class ChildTitleContent(BlockContent):
    """child_page and child_database carry only a title string."""

    title: str = ""


class LinkContent(BlockContent):
    """bookmark, embed and link_preview."""

    url: str
    caption: list[RichText] = Field(default_factory=list)


class MediaContent(BlockContent):
    """image, video, audio, file and pdf."""

    type: str = "external"
    external: ExternalFile | None = None
    file: HostedFile | None = None
    caption: list[RichText] = Field(default_factory=list)
    name: str | None = None

    @property
    def url(self) -> str | None:
        if self.file is not None:
            return self.file.url
        if self.external is not None:
            return self.external.url
        return None


class EquationContent(BlockContent):
    expression: str


class EmptyContent(BlockContent):
    """divider, breadcrumb and column_list have no payload fields."""


class ColumnContent(BlockContent):
    width_ratio: float | None = None


class TableOfContentsContent(BlockContent):
    color: Color = Color.DEFAULT


class LinkToPageContent(BlockContent):
    type: str
    page_id: str | None = None
    database_id: str | None = None
    comment_id: str | None = None

    @property
    def target_id(self) -> str | None:
        return self.page_id or self.database_id or self.comment_id


class SyncedFrom(WireModel):
    type: Literal["block_id"] = "block_id"
    block_id: str


class SyncedBlockContent(BlockContent):
    """``synced_from`` is null on the original and points at it on copies."""

    synced_from: SyncedFrom | None = None

    def to_wire(self, *, exclude_none: bool = True) -> dict:
        synced_from = self.synced_from.to_wire() if self.synced_from else None
        return {"synced_from": synced_from}


class TableContent(BlockContent):
    table_width: int
    has_column_header: bool = False
    has_row_header: bool = False


class TableRowContent(BlockContent):
    cells: list[list[RichText]] = Field(default_factory=list)


class UnsupportedContent(BlockContent):
    """Raw payload of a block the client does not model, re-emitted verbatim."""

    raw: JsonValue = None

    def to_wire(self, *, exclude_none: bool = True) -> Any:
        return self.raw


_CONTENT_MODELS: dict[str, type[BlockContent]] = {
    BlockType.PARAGRAPH: RichTextContent,
    BlockType.HEADING_1: HeadingContent,
    BlockType.HEADING_2: HeadingContent,
    BlockType.HEADING_3: HeadingContent,
    BlockType.BULLETED_LIST_ITEM: RichTextContent,
    BlockType.NUMBERED_LIST_ITEM: RichTextContent,
    BlockType.TO_DO: ToDoContent,
    BlockType.TOGGLE: RichTextContent,
    BlockType.CODE: CodeContent,
    BlockType.QUOTE: RichTextContent,
    BlockType.CALLOUT: CalloutContent,
    BlockType.DIVIDER: EmptyContent,
    BlockType.IMAGE: MediaContent,
    BlockType.VIDEO: MediaContent,
    BlockType.AUDIO: MediaContent,
    BlockType.FILE: MediaContent,
    BlockType.PDF: MediaContent,
    BlockType.BOOKMARK: LinkContent,
    BlockType.EMBED: LinkContent,
    BlockType.LINK_PREVIEW: LinkContent,
    BlockType.EQUATION: EquationContent,
    BlockType.LINK_TO_PAGE: LinkToPageContent,
    BlockType.CHILD_PAGE: ChildTitleContent,
    BlockType.CHILD_DATABASE: ChildTitleContent,
    BlockType.COLUMN_LIST: EmptyContent,
    BlockType.COLUMN: ColumnContent,
    BlockType.SYNCED_BLOCK: SyncedBlockContent,
    BlockType.TABLE: TableContent,
    BlockType.TABLE_ROW: TableRowContent,
    BlockType.TABLE_OF_CONTENTS: TableOfContentsContent,
    BlockType.BREADCRUMB: EmptyContent,
    BlockType.TEMPLATE: RichTextContent,
}


def decode_block_content(block_type: str, payload: Any, block_id: str | None = None) -> BlockContent:
    """Decode a payload for ``block_type``, falling back to ``UnsupportedContent``."""
    model = _CONTENT_MODELS.get(block_type)
    if model is None:
        if block_type != BlockType.UNSUPPORTED:
            logger.info(
                "Unsupported block type %r (block %s)",
                block_type,
                block_id,
                extra={"block_id": block_id, "kind": block_type},
            )
        return UnsupportedContent(raw=payload)
    if not isinstance(payload, dict):
        logger.warning(
            "Missing %s payload on block %s",
            block_type,
            block_id,
            extra={"block_id": block_id, "kind": block_type},
        )
        return UnsupportedContent(raw=payload)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "Malformed %s payload on block %s: %s",
            block_type,
            block_id,
            exc.errors(include_url=False),
            extra={"block_id": block_id, "kind": block_type},
        )
        return UnsupportedContent(raw=payload)


# --- Envelope ---


class Block(NotionItem):
    """One node of page content."""

    object: Literal["block"] = "block"
    type: str
    created_time: datetime | None = None
    created_by: PartialUser | None = None
    last_edited_time: datetime | None = None
    last_edited_by: PartialUser | None = None
    archived: bool = False
    in_trash: bool = False
    has_children: bool = False
    content: BlockContent = Field(exclude=True)
    children: list["Block"] = Field(default_factory=list, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _decode_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "content" in data:
            return data
        block_type = data.get("type")
        if not isinstance(block_type, str):
            return data
        data = {key: value for key, value in data.items() if key != "children"}
        data["content"] = decode_block_content(block_type, data.get(block_type), data.get("id"))
        return data

    @model_serializer(mode="wrap")
    def _serialize_wire(self, handler: SerializerFunctionWrapHandler) -> dict:
        data = handler(self)
        payload = self.content.to_wire()
        if payload is not None or not isinstance(self.content, UnsupportedContent):
            data[self.type] = payload
        return data

    @property
    def block_type(self) -> BlockType | None:
        """The type as an enum member, or None for types without a payload model."""
        try:
            return BlockType(self.type)
        except ValueError:
            return None

    @property
    def is_supported(self) -> bool:
        return not isinstance(self.content, UnsupportedContent)

    @property
    def is_list_item(self) -> bool:
        return self.type in LIST_ITEM_TYPES

    @property
    def text(self) -> str:
        """Plain text of the payload's rich text or title, if it has one."""
        content = self.content
        if isinstance(content, (RichTextContent, CodeContent)):
            return plain_text(content.rich_text)
        if isinstance(content, ChildTitleContent):
            return content.title
        return ""

    @property
    def description(self) -> str:
        return self.text or self.type

    def with_children(self, children: list["Block"]) -> "Block":
        """Return a copy of this block with ``children`` attached.

        Raises:
            ValueError: If children are given for a block without ``has_children``.
        """
        if children and not self.has_children:
            raise ValueError(f"Block {self.id} has no children to attach")
        return self.model_copy(update={"children": list(children)})
