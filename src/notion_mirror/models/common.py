"""Value types shared by pages, databases, blocks and comments.

Rich text, annotations, parent references, icons and file references all
appear verbatim in several Notion payloads, so they live here rather than
next to any one container type.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Color(str, Enum):
    """Text and background colors accepted by Notion."""

    DEFAULT = "default"
    GRAY = "gray"
    BROWN = "brown"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"
    PINK = "pink"
    RED = "red"
    GRAY_BACKGROUND = "gray_background"
    BROWN_BACKGROUND = "brown_background"
    ORANGE_BACKGROUND = "orange_background"
    YELLOW_BACKGROUND = "yellow_background"
    GREEN_BACKGROUND = "green_background"
    BLUE_BACKGROUND = "blue_background"
    PURPLE_BACKGROUND = "purple_background"
    PINK_BACKGROUND = "pink_background"
    RED_BACKGROUND = "red_background"


class WireModel(BaseModel):
    """Immutable model that serializes back to the Notion wire shape."""

    model_config = ConfigDict(frozen=True)

    def to_wire(self, *, exclude_none: bool = True) -> dict:
        """Return the JSON-ready dict Notion would accept for this value."""
        return self.model_dump(mode="json", exclude_none=exclude_none)


# --- Rich text ---


class Annotations(WireModel):
    """Independent formatting flags on a rich-text run."""

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False
    color: Color = Color.DEFAULT


class Link(WireModel):
    url: str


class TextContent(WireModel):
    content: str
    link: Link | None = None


class Equation(WireModel):
    expression: str


class Reference(WireModel):
    """Bare ``{"id": ...}`` pointer used by relations and mentions."""

    id: str


class DateRange(WireModel):
    """Notion date value. ``start``/``end`` keep the API's ISO-8601 strings."""

    start: str
    end: str | None = None
    time_zone: str | None = None


class PartialUser(WireModel):
    """Author reference as embedded in object envelopes."""

    object: Literal["user"] = "user"
    id: str


class LinkPreviewMention(WireModel):
    url: str


class Mention(WireModel):
    """Inline mention of a user, page, database, date or link."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    user: PartialUser | None = None
    page: Reference | None = None
    database: Reference | None = None
    date: DateRange | None = None
    link_preview: LinkPreviewMention | None = None


class RichText(WireModel):
    """One run of annotated text.

    ``plain_text`` is always populated: when a request body omits it, it is
    derived from the text content or equation expression.
    """

    type: str = "text"
    plain_text: str = ""
    href: str | None = None
    annotations: Annotations = Field(default_factory=Annotations)
    text: TextContent | None = None
    mention: Mention | None = None
    equation: Equation | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_plain_text(cls, data):
        if not isinstance(data, dict) or data.get("plain_text") is not None:
            return data
        data = dict(data)
        text = data.get("text")
        equation = data.get("equation")
        if isinstance(text, dict) and isinstance(text.get("content"), str):
            data["plain_text"] = text["content"]
        elif isinstance(equation, dict) and isinstance(equation.get("expression"), str):
            data["plain_text"] = equation["expression"]
        return data

    @classmethod
    def from_plain(cls, content: str, href: str | None = None) -> "RichText":
        """Build an unannotated text run, optionally linked."""
        link = Link(url=href) if href else None
        return cls(
            plain_text=content,
            href=href,
            text=TextContent(content=content, link=link),
        )


def plain_text(runs: list[RichText]) -> str:
    """Concatenate the plain text of a rich-text list."""
    return "".join(run.plain_text for run in runs)



# --- Parents ---


class DatabaseParent(WireModel):
    type: Literal["database_id"] = "database_id"
    database_id: str

    @property
    def id(self) -> str:
        return self.database_id


class DataSourceParent(WireModel):
    type: Literal["data_source_id"] = "data_source_id"
    data_source_id: str
    database_id: str | None = None

    @property
    def id(self) -> str:
        return self.data_source_id


class PageParent(WireModel):
    type: Literal["page_id"] = "page_id"
    page_id: str

    @property
    def id(self) -> str:
        return self.page_id


class BlockParent(WireModel):
    type: Literal["block_id"] = "block_id"
    block_id: str

    @property
    def id(self) -> str:
        return self.block_id


class WorkspaceParent(WireModel):
    type: Literal["workspace"] = "workspace"
    workspace: bool = True

    @property
    def id(self) -> str:
        return "workspace"


Parent = Annotated[
    Union[DatabaseParent, DataSourceParent, PageParent, BlockParent, WorkspaceParent],
    Field(discriminator="type"),
]


# --- Files and icons ---


class ExternalFile(WireModel):
    url: str


class HostedFile(WireModel):
    """Notion-hosted file. The signed URL expires at ``expiry_time``."""

    url: str
    expiry_time: str | None = None


class FileObject(WireModel):
    """A file reference that is either hosted by Notion or external."""

    type: str = "external"
    name: str | None = None
    external: ExternalFile | None = None
    file: HostedFile | None = None

    @property
    def url(self) -> str | None:
        if self.file is not None:
            return self.file.url
        if self.external is not None:
            return self.external.url
        return None


class Icon(WireModel):
    """Page, database or callout icon."""

    type: str
    emoji: str | None = None
    external: ExternalFile | None = None
    file: HostedFile | None = None

    @property
    def url(self) -> str | None:
        if self.file is not None:
            return self.file.url
        if self.external is not None:
            return self.external.url
        return None


class SelectOption(WireModel):
    """Option value shared by select, multi-select and status."""

    id: str | None = None
    name: str
    color: Color = Color.DEFAULT
