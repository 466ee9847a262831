"""Filter and sort payloads passed through to query and search endpoints.

Filters are opaque JSON: the client forwards whatever structure the caller
builds, key order included.
"""

from enum import Enum
from typing import Literal

from pydantic import ConfigDict, JsonValue, RootModel, model_validator

from notion_mirror.models.common import WireModel


class SortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class DatabaseFilter(RootModel[dict[str, JsonValue]]):
    """A database query filter object, forwarded unmodified."""

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, JsonValue]:
        return self.model_dump(mode="json")


class DatabaseSort(WireModel):
    """Sort by a property name or by a timestamp, never both."""

    property: str | None = None
    timestamp: Literal["created_time", "last_edited_time"] | None = None
    direction: SortDirection = SortDirection.ASCENDING

    @model_validator(mode="after")
    def _one_key(self) -> "DatabaseSort":
        if (self.property is None) == (self.timestamp is None):
            raise ValueError("DatabaseSort needs exactly one of 'property' or 'timestamp'")
        return self


class SearchFilter(WireModel):
    """Restrict search results to pages or databases."""

    value: Literal["page", "database"]
    property: Literal["object"] = "object"


class SearchSort(WireModel):
    direction: SortDirection = SortDirection.DESCENDING
    timestamp: Literal["last_edited_time"] = "last_edited_time"
