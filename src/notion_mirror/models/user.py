"""Workspace user model."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from notion_mirror.models.base import NotionItem


class Person(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str | None = None


class Bot(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    workspace_name: str | None = None


class User(NotionItem):
    """A person or bot. People lists and author fields may carry only the id."""

    object: Literal["user"] = "user"
    parent: None = Field(default=None, exclude=True)
    type: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    person: Person | None = None
    bot: Bot | None = None

    @property
    def description(self) -> str:
        return self.name or self.id

    def to_wire(self, *, exclude_none: bool = True) -> dict:
        return self.model_dump(mode="json", exclude_none=exclude_none)
