"""Common base for the top-level objects the API returns."""

from pydantic import BaseModel, ConfigDict

from notion_mirror.models.common import Parent


class NotionItem(BaseModel):
    """Anything a renderer can list: it has an id, an object tag and a parent."""

    model_config = ConfigDict(frozen=True)

    object: str
    id: str
    parent: Parent | None = None

    @property
    def description(self) -> str:
        """Human-readable one-line summary."""
        return self.id
