"""Page and database property values with a schema-drift tolerant codec.

Every property object on the wire carries an ``id`` and a ``type`` tag, plus a
payload stored under the key named by the tag. The same kind can arrive in
several payload shapes: a database's schema definition (``"select":
{"options": [...]}``) looks nothing like a page's live value (``"select":
{"name": ...}``), and empty cells come back as ``null``. ``decode_property``
reads the tag, then tries an ordered list of payload shapes for that kind. When
none applies it returns a ``NullProperty`` that keeps the id and the original
kind, so one odd field never fails a whole page.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Literal

from pydantic import JsonValue, ValidationError

from notion_mirror.models.common import (
    DateRange,
    FileObject,
    Reference,
    RichText,
    SelectOption,
    WireModel,
    plain_text,
)
from notion_mirror.models.user import User

logger = logging.getLogger(__name__)


class PropertyKind(str, Enum):
    """Property type tags understood by the codec."""

    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    PEOPLE = "people"
    FILES = "files"
    CHECKBOX = "checkbox"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    FORMULA = "formula"
    RELATION = "relation"
    ROLLUP = "rollup"
    CREATED_TIME = "created_time"
    CREATED_BY = "created_by"
    LAST_EDITED_TIME = "last_edited_time"
    LAST_EDITED_BY = "last_edited_by"
    STATUS = "status"
    UNIQUE_ID = "unique_id"
    NULL = "null"


def _wire(value: Any) -> Any:
    if isinstance(value, list):
        return [_wire(item) for item in value]
    if hasattr(value, "to_wire"):
        return value.to_wire()
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    return value


# --- Composite payloads ---


class FormulaValue(WireModel):
    """Computed formula result; exactly one of the typed slots matches ``type``."""

    type: Literal["boolean", "date", "number", "string"]
    boolean: bool | None = None
    date: DateRange | None = None
    number: float | None = None
    string: str | None = None

    @property
    def value(self) -> bool | DateRange | float | str | None:
        return getattr(self, self.type)

    def to_wire(self, *, exclude_none: bool = True) -> dict:
        return {"type": self.type, self.type: _wire(self.value)}


class RollupValue(WireModel):
    """Aggregated relation values. ``array`` items are tag-only property values."""

    type: str
    function: str | None = None
    number: float | None = None
    date: DateRange | None = None
    array: list[JsonValue] | None = None

    @property
    def value(self) -> Any:
        return getattr(self, self.type, None)

    def items(self) -> list["Property"]:
        """Decode ``array`` entries as properties with an empty id."""
        return [
            decode_property({"id": "", **item}, f"rollup.array[{index}]")
            for index, item in enumerate(self.array or [])
            if isinstance(item, dict)
        ]

    def to_wire(self, *, exclude_none: bool = True) -> dict:
        wire: dict = {"type": self.type, self.type: _wire(self.value)}
        if self.function is not None:
            wire["function"] = self.function
        return wire


class UniqueIdValue(WireModel):
    number: int | None = None
    prefix: str | None = None

    def __str__(self) -> str:
        if self.number is None:
            return ""
        return f"{self.prefix}-{self.number}" if self.prefix else str(self.number)


# --- Property variants ---


class Property(WireModel):
    """Base class for one property value, keyed by a stable property id."""

    tag: ClassVar[PropertyKind] = PropertyKind.NULL

    id: str

    @property
    def kind(self) -> PropertyKind | str:
        return self.tag

    @property
    def kind_name(self) -> str:
        """The kind as its wire tag string."""
        kind = self.kind
        return kind.value if isinstance(kind, PropertyKind) else kind

    def to_wire(self, *, exclude_none: bool = True) -> dict:
        tag = self.tag.value
        return {"id": self.id, "type": tag, tag: _wire(getattr(self, "value"))}


class TitleProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.TITLE
    value: list[RichText]

    @property
    def text(self) -> str:
        return plain_text(self.value)


class RichTextProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.RICH_TEXT
    value: list[RichText]

    @property
    def text(self) -> str:
        return plain_text(self.value)


class NumberProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.NUMBER
    value: float


class SelectProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.SELECT
    value: SelectOption


class MultiSelectProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.MULTI_SELECT
    value: list[SelectOption]


class DateProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.DATE
    value: DateRange


class PeopleProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.PEOPLE
    value: list[User]


class FilesProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.FILES
    value: list[FileObject]


class CheckboxProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.CHECKBOX
    value: bool


class UrlProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.URL
    value: str


class EmailProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.EMAIL
    value: str


class PhoneNumberProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.PHONE_NUMBER
    value: str


class FormulaProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.FORMULA
    value: FormulaValue


class RelationProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.RELATION
    value: list[Reference]


class RollupProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.ROLLUP
    value: RollupValue


class CreatedTimeProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.CREATED_TIME
    value: datetime


class CreatedByProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.CREATED_BY
    value: User


class LastEditedTimeProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.LAST_EDITED_TIME
    value: datetime


class LastEditedByProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.LAST_EDITED_BY
    value: User


class StatusProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.STATUS
    value: SelectOption


class UniqueIdProperty(Property):
    tag: ClassVar[PropertyKind] = PropertyKind.UNIQUE_ID
    value: UniqueIdValue


class NullProperty(Property):
    """Fallback for a payload no known shape matched.

    ``kind`` reports the original tag, so database schemas still show the
    real column types.
    """

    original_kind: str = PropertyKind.NULL.value

    @property
    def kind(self) -> PropertyKind | str:
        try:
            return PropertyKind(self.original_kind)
        except ValueError:
            return self.original_kind

    def to_wire(self, *, exclude_none: bool = True) -> dict:
        return {"id": self.id, "type": self.original_kind}


# --- Codec ---

Shape = tuple[Callable[[Any], bool], Callable[[Any], Any]]


def _is_list(raw: Any) -> bool:
    return isinstance(raw, list)


def _is_str(raw: Any) -> bool:
    return isinstance(raw, str)


def _is_bool(raw: Any) -> bool:
    return isinstance(raw, bool)


def _is_number(raw: Any) -> bool:
    return isinstance(raw, (int, float)) and not isinstance(raw, bool)


def _has_key(key: str) -> Callable[[Any], bool]:
    def accepts(raw: Any) -> bool:
        return isinstance(raw, dict) and key in raw

    return accepts


def _has_options(raw: Any) -> bool:
    return isinstance(raw, dict) and isinstance(raw.get("options"), list)


def _same(raw: Any) -> Any:
    return raw


_VARIANTS: dict[PropertyKind, type[Property]] = {
    cls.tag: cls
    for cls in (
        TitleProperty,
        RichTextProperty,
        NumberProperty,
        SelectProperty,
        MultiSelectProperty,
        DateProperty,
        PeopleProperty,
        FilesProperty,
        CheckboxProperty,
        UrlProperty,
        EmailProperty,
        PhoneNumberProperty,
        FormulaProperty,
        RelationProperty,
        RollupProperty,
        CreatedTimeProperty,
        CreatedByProperty,
        LastEditedTimeProperty,
        LastEditedByProperty,
        StatusProperty,
        UniqueIdProperty,
    )
}

# Ordered payload shapes per kind: first (accepts, extract) pair whose
# predicate matches and whose extracted value validates wins.
_SHAPES: dict[PropertyKind, list[Shape]] = {
    PropertyKind.TITLE: [(_is_list, _same)],
    PropertyKind.RICH_TEXT: [(_is_list, _same)],
    PropertyKind.NUMBER: [(_is_number, _same)],
    PropertyKind.SELECT: [(_has_key("name"), _same)],
    PropertyKind.MULTI_SELECT: [
        (_is_list, _same),
        (_has_options, lambda raw: raw["options"]),
    ],
    PropertyKind.DATE: [(_has_key("start"), _same)],
    PropertyKind.PEOPLE: [(_is_list, _same)],
    PropertyKind.FILES: [(_is_list, _same)],
    PropertyKind.CHECKBOX: [(_is_bool, _same)],
    PropertyKind.URL: [(_is_str, _same)],
    PropertyKind.EMAIL: [(_is_str, _same)],
    PropertyKind.PHONE_NUMBER: [(_is_str, _same)],
    PropertyKind.FORMULA: [(_has_key("type"), _same)],
    PropertyKind.RELATION: [(_is_list, _same)],
    PropertyKind.ROLLUP: [(_has_key("type"), _same)],
    PropertyKind.CREATED_TIME: [(_is_str, _same)],
    PropertyKind.CREATED_BY: [(_has_key("id"), _same)],
    PropertyKind.LAST_EDITED_TIME: [(_is_str, _same)],
    PropertyKind.LAST_EDITED_BY: [(_has_key("id"), _same)],
    PropertyKind.STATUS: [(_has_key("name"), _same)],
    PropertyKind.UNIQUE_ID: [(_has_key("number"), _same)],
}


def decode_property(raw: Any, path: str = "property") -> Property:
    """Decode one property object, degrading to ``NullProperty`` on shape drift.

    Args:
        raw: The property object as parsed from JSON.
        path: Location used in log messages, e.g. ``properties.Status``.

    Returns:
        The matching property variant, or a ``NullProperty`` carrying the id
        and original kind when no payload shape for that kind applies.

    Raises:
        ValueError: If ``raw`` lacks a string ``id`` or ``type``. That is an
            envelope error, not payload drift, and fails the enclosing object.
    """
    if isinstance(raw, Property):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a property object")
    prop_id, tag = raw.get("id"), raw.get("type")
    if not isinstance(prop_id, str) or not isinstance(tag, str):
        raise ValueError(f"{path}: property object needs string 'id' and 'type'")

    try:
        kind = PropertyKind(tag)
    except ValueError:
        logger.warning(
            "Unknown property kind %r at %s, keeping as null",
            tag,
            path,
            extra={"path": path, "kind": tag},
        )
        return NullProperty(id=prop_id, original_kind=tag)
    if kind is PropertyKind.NULL:
        return NullProperty(id=prop_id)

    payload = raw.get(tag)
    variant = _VARIANTS[kind]
    for accepts, extract in _SHAPES[kind]:
        if not accepts(payload):
            continue
        try:
            return variant.model_validate({"id": prop_id, "value": extract(payload)})
        except ValidationError as exc:
            logger.warning(
                "Malformed %s payload at %s: %s",
                tag,
                path,
                exc.errors(include_url=False),
                extra={"path": path, "kind": tag},
            )

    # Schema definitions and empty cells land here routinely.
    logger.debug("No %s payload shape matched at %s", tag, path, extra={"path": path, "kind": tag})
    return NullProperty(id=prop_id, original_kind=tag)


def decode_properties(raw: Any, path: str = "properties") -> dict[str, Property]:
    """Decode a ``name -> property object`` map."""
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected an object")
    return {name: decode_property(value, f"{path}.{name}") for name, value in raw.items()}


def encode_properties(properties: dict[str, Property]) -> dict[str, dict]:
    """Mirror of ``decode_properties``."""
    return {name: prop.to_wire() for name, prop in properties.items()}
