"""Pages, databases, comments and the paginated list envelope."""

from datetime import datetime
from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from notion_mirror.models.base import NotionItem
from notion_mirror.models.blocks import Block
from notion_mirror.models.common import FileObject, Icon, PartialUser, RichText, plain_text
from notion_mirror.models.properties import (
    Property,
    TitleProperty,
    decode_properties,
    encode_properties,
)
from notion_mirror.models.user import User


class _PropertyContainer(NotionItem):
    """Shared envelope of pages and databases."""

    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    created_by: PartialUser | None = None
    last_edited_by: PartialUser | None = None
    archived: bool = False
    in_trash: bool = False
    icon: Icon | None = None
    cover: FileObject | None = None
    url: str | None = None
    public_url: str | None = None
    properties: dict[str, Property] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def _decode_properties(cls, value: Any) -> dict[str, Property]:
        return decode_properties(value)

    @field_serializer("properties")
    def _encode_properties(self, properties: dict[str, Property]) -> dict[str, dict]:
        return encode_properties(properties)

    def sorted_properties(self) -> list[tuple[str, Property]]:
        """Properties ordered by name, the order every renderer uses."""
        return sorted(self.properties.items())


class Page(_PropertyContainer):
    """A page; its title lives in whichever property has kind ``title``."""

    object: Literal["page"] = "page"

    @property
    def title(self) -> list[RichText]:
        for prop in self.properties.values():
            if isinstance(prop, TitleProperty):
                return prop.value
        return []

    @property
    def description(self) -> str:
        return plain_text(self.title)


class Database(_PropertyContainer):
    """A database; ``properties`` holds its column schema."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    object: Literal["database"] = "database"
    title: list[RichText] = Field(default_factory=list)
    # "description" on the wire; renamed to keep NotionItem.description a summary
    description_text: list[RichText] = Field(default_factory=list, alias="description")
    is_inline: bool = False

    @property
    def description(self) -> str:
        return plain_text(self.title)


class Comment(NotionItem):
    object: Literal["comment"] = "comment"
    discussion_id: str
    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    created_by: PartialUser | None = None
    rich_text: list[RichText] = Field(default_factory=list)

    @property
    def description(self) -> str:
        return plain_text(self.rich_text)


SearchResult = Annotated[Union[Page, Database], Field(discriminator="object")]

T = TypeVar("T")


class PaginatedList(BaseModel, Generic[T]):
    """One page of a cursor-paginated list response."""

    model_config = ConfigDict(frozen=True)

    object: Literal["list"] = "list"
    results: list[T] = Field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False

    @property
    def cursor(self) -> str | None:
        """Cursor for the next request, or None when the listing is exhausted."""
        return self.next_cursor if self.has_more else None


PageList = PaginatedList[Page]
DatabaseList = PaginatedList[Database]
BlockList = PaginatedList[Block]
CommentList = PaginatedList[Comment]
UserList = PaginatedList[User]
SearchResultList = PaginatedList[SearchResult]
