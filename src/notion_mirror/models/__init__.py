"""Typed models for Notion API objects."""

from notion_mirror.models.base import NotionItem
from notion_mirror.models.blocks import (
    LIST_ITEM_TYPES,
    Block,
    BlockContent,
    BlockType,
    CalloutContent,
    ChildTitleContent,
    CodeContent,
    ColumnContent,
    EmptyContent,
    EquationContent,
    HeadingContent,
    LinkContent,
    LinkToPageContent,
    MediaContent,
    RichTextContent,
    SyncedBlockContent,
    SyncedFrom,
    TableContent,
    TableOfContentsContent,
    TableRowContent,
    ToDoContent,
    UnsupportedContent,
    decode_block_content,
)
from notion_mirror.models.common import (
    Annotations,
    BlockParent,
    Color,
    DatabaseParent,
    DateRange,
    FileObject,
    Icon,
    PageParent,
    Parent,
    PartialUser,
    Reference,
    RichText,
    SelectOption,
    WorkspaceParent,
    plain_text,
)
from notion_mirror.models.items import (
    BlockList,
    Comment,
    CommentList,
    Database,
    DatabaseList,
    Page,
    PageList,
    PaginatedList,
    SearchResult,
    SearchResultList,
    UserList,
)
from notion_mirror.models.properties import (
    NullProperty,
    Property,
    PropertyKind,
    decode_properties,
    decode_property,
)
from notion_mirror.models.query import DatabaseFilter, DatabaseSort, SearchFilter, SearchSort, SortDirection
from notion_mirror.models.user import User

__all__ = [
    "Annotations",
    "Block",
    "BlockContent",
    "BlockList",
    "BlockParent",
    "BlockType",
    "CalloutContent",
    "ChildTitleContent",
    "CodeContent",
    "Color",
    "ColumnContent",
    "Comment",
    "CommentList",
    "Database",
    "DatabaseFilter",
    "DatabaseList",
    "DatabaseParent",
    "DatabaseSort",
    "DateRange",
    "EmptyContent",
    "EquationContent",
    "FileObject",
    "HeadingContent",
    "Icon",
    "LIST_ITEM_TYPES",
    "LinkContent",
    "LinkToPageContent",
    "MediaContent",
    "NotionItem",
    "NullProperty",
    "Page",
    "PageList",
    "PageParent",
    "PaginatedList",
    "Parent",
    "PartialUser",
    "Property",
    "PropertyKind",
    "Reference",
    "RichText",
    "RichTextContent",
    "SearchFilter",
    "SearchResult",
    "SearchResultList",
    "SearchSort",
    "SelectOption",
    "SortDirection",
    "SyncedBlockContent",
    "SyncedFrom",
    "TableContent",
    "TableOfContentsContent",
    "TableRowContent",
    "ToDoContent",
    "UnsupportedContent",
    "User",
    "UserList",
    "WorkspaceParent",
    "decode_block_content",
    "decode_properties",
    "decode_property",
    "plain_text",
]
