"""Display strings for property values in page listings."""

from datetime import datetime

from notion_mirror.models.common import DateRange, plain_text
from notion_mirror.models.properties import (
    CheckboxProperty,
    CreatedByProperty,
    CreatedTimeProperty,
    DateProperty,
    EmailProperty,
    FilesProperty,
    FormulaProperty,
    LastEditedByProperty,
    LastEditedTimeProperty,
    MultiSelectProperty,
    NullProperty,
    NumberProperty,
    PeopleProperty,
    PhoneNumberProperty,
    Property,
    RelationProperty,
    RichTextProperty,
    RollupProperty,
    SelectProperty,
    StatusProperty,
    TitleProperty,
    UniqueIdProperty,
    UrlProperty,
)


def format_number(value: float) -> str:
    """Integral numbers without a trailing ``.0``."""
    return str(int(value)) if value.is_integer() else str(value)


def format_date_range(value: DateRange) -> str:
    return f"{value.start} - {value.end}" if value.end else value.start


def _format_timestamp(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def _format_scalar(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, DateRange):
        return format_date_range(value)
    return str(value)


def format_property_value(prop: Property) -> str | None:
    """Render one property value as text.

    Returns None for values with nothing to show (``NullProperty``, empty
    formula results); callers omit those lines entirely.
    """
    if isinstance(prop, NullProperty):
        return None
    if isinstance(prop, (TitleProperty, RichTextProperty)):
        return plain_text(prop.value)
    if isinstance(prop, NumberProperty):
        return format_number(prop.value)
    if isinstance(prop, (SelectProperty, StatusProperty)):
        return prop.value.name
    if isinstance(prop, MultiSelectProperty):
        return ", ".join(option.name for option in prop.value)
    if isinstance(prop, DateProperty):
        return format_date_range(prop.value)
    if isinstance(prop, CheckboxProperty):
        return "Yes" if prop.value else "No"
    if isinstance(prop, (UrlProperty, EmailProperty, PhoneNumberProperty)):
        return prop.value
    if isinstance(prop, FormulaProperty):
        return _format_scalar(prop.value.value)
    if isinstance(prop, RelationProperty):
        return ", ".join(ref.id for ref in prop.value)
    if isinstance(prop, RollupProperty):
        rollup = prop.value
        if rollup.type == "array":
            shown = (format_property_value(item) for item in rollup.items())
            return ", ".join(text for text in shown if text)
        return _format_scalar(rollup.value)
    if isinstance(prop, PeopleProperty):
        return ", ".join(user.description for user in prop.value)
    if isinstance(prop, FilesProperty):
        return ", ".join(f.url for f in prop.value if f.url)
    if isinstance(prop, (CreatedTimeProperty, LastEditedTimeProperty)):
        return _format_timestamp(prop.value)
    if isinstance(prop, (CreatedByProperty, LastEditedByProperty)):
        return prop.value.description
    if isinstance(prop, UniqueIdProperty):
        return str(prop.value) or None
    return None
