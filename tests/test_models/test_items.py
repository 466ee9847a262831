"""Tests for pages, databases, comments, list envelopes and query payloads."""

import pytest
from pydantic import TypeAdapter, ValidationError

from notion_mirror.models.common import DatabaseParent, RichText, WorkspaceParent
from notion_mirror.models.items import (
    Comment,
    Database,
    Page,
    PageList,
    SearchResult,
    SearchResultList,
)
from notion_mirror.models.properties import NullProperty, PropertyKind, TitleProperty
from notion_mirror.models.query import DatabaseFilter, DatabaseSort, SearchFilter, SearchSort, SortDirection


def _text(content: str) -> dict:
    """Return a minimal rich-text run."""
    return {
        "type": "text",
        "text": {"content": content},
        "plain_text": content,
        "annotations": {
            "bold": False,
            "italic": False,
            "strikethrough": False,
            "underline": False,
            "code": False,
            "color": "default",
        },
    }


def _make_page(**overrides) -> dict:
    """Return a page JSON object with a title property."""
    page = {
        "object": "page",
        "id": "page-1",
        "created_time": "2025-01-01T00:00:00.000Z",
        "last_edited_time": "2025-01-02T00:00:00.000Z",
        "created_by": {"object": "user", "id": "u1"},
        "last_edited_by": {"object": "user", "id": "u1"},
        "parent": {"type": "database_id", "database_id": "db-1"},
        "archived": False,
        "in_trash": False,
        "icon": {"type": "emoji", "emoji": "📄"},
        "cover": None,
        "url": "https://www.notion.so/page1",
        "properties": {
            "Name": {"id": "title", "type": "title", "title": [_text("My Page")]},
            "Tags": {"id": "t", "type": "multi_select", "multi_select": [{"id": "1", "name": "AI"}]},
        },
    }
    page.update(overrides)
    return page


def _make_database(**overrides) -> dict:
    """Return a database JSON object with schema-shaped properties."""
    database = {
        "object": "database",
        "id": "db-1",
        "created_time": "2025-01-01T00:00:00.000Z",
        "last_edited_time": "2025-01-01T00:00:00.000Z",
        "parent": {"type": "workspace", "workspace": True},
        "title": [_text("Reading List")],
        "description": [_text("Things to read")],
        "is_inline": False,
        "properties": {
            "Name": {"id": "title", "name": "Name", "type": "title", "title": {}},
            "Count": {"id": "def", "name": "Count", "type": "number", "number": {"format": "number"}},
        },
        "archived": False,
        "in_trash": False,
    }
    database.update(overrides)
    return database


# --- Page ---


def test_page_title_from_title_property():
    """The page title comes from whichever property has kind title."""
    page = Page.model_validate(_make_page())
    assert [run.plain_text for run in page.title] == ["My Page"]
    assert page.description == "My Page"
    assert page.parent == DatabaseParent(database_id="db-1")


def test_page_without_title_property_has_empty_title():
    """No title property yields an empty rich-text list, not an error."""
    page = Page.model_validate(_make_page(properties={}))
    assert page.title == []
    assert page.description == ""


def test_page_properties_sorted_by_name():
    """sorted_properties orders names lexicographically."""
    page = Page.model_validate(_make_page())
    assert [name for name, _ in page.sorted_properties()] == ["Name", "Tags"]


def test_page_round_trip():
    """Pages survive dump and re-validation."""
    page = Page.model_validate(_make_page())
    assert Page.model_validate(page.model_dump(mode="json", by_alias=True)) == page


def test_page_with_malformed_property_still_decodes():
    """One drifting property becomes null without failing the page."""
    raw = _make_page()
    raw["properties"]["Due"] = {"id": "due", "type": "date", "date": "tomorrow"}
    page = Page.model_validate(raw)
    assert isinstance(page.properties["Due"], NullProperty)
    assert isinstance(page.properties["Name"], TitleProperty)


# --- Database ---


def test_database_schema_keeps_kinds():
    """Schema definitions decode to null properties that keep their kind."""
    database = Database.model_validate(_make_database())
    assert database.properties["Name"].kind == PropertyKind.TITLE
    assert database.properties["Count"].kind == PropertyKind.NUMBER
    assert database.description == "Reading List"
    assert [run.plain_text for run in database.description_text] == ["Things to read"]
    assert database.parent == WorkspaceParent()


def test_database_dump_uses_wire_description_key():
    """The rich-text description is emitted under its wire name."""
    database = Database.model_validate(_make_database())
    dumped = database.model_dump(mode="json", by_alias=True)
    assert dumped["description"][0]["plain_text"] == "Things to read"
    assert dumped["properties"]["Count"] == {"id": "def", "type": "number"}


# --- Comment ---


def test_comment_decodes():
    """Comments carry a discussion id and rich-text body."""
    comment = Comment.model_validate(
        {
            "object": "comment",
            "id": "c1",
            "parent": {"type": "page_id", "page_id": "page-1"},
            "discussion_id": "d1",
            "created_time": "2025-01-01T00:00:00.000Z",
            "last_edited_time": "2025-01-01T00:00:00.000Z",
            "created_by": {"object": "user", "id": "u1"},
            "rich_text": [_text("Looks good")],
        }
    )
    assert comment.discussion_id == "d1"
    assert comment.description == "Looks good"


# --- Search results and lists ---


def test_search_result_dispatches_on_object():
    """Search results decode as Page or Database by their object tag."""
    adapter = TypeAdapter(SearchResult)
    assert isinstance(adapter.validate_python(_make_page()), Page)
    assert isinstance(adapter.validate_python(_make_database()), Database)


def test_search_result_rejects_unknown_object():
    """Anything other than page or database is a decode failure."""
    with pytest.raises(ValidationError):
        TypeAdapter(SearchResult).validate_python({"object": "block", "id": "b"})


def test_search_result_list_mixed():
    """A search page keeps server order across pages and databases."""
    listing = SearchResultList.model_validate(
        {"object": "list", "results": [_make_database(), _make_page()], "next_cursor": None, "has_more": False}
    )
    assert [type(item) for item in listing.results] == [Database, Page]


def test_list_cursor_requires_has_more():
    """The next cursor is only followed while has_more is true."""
    more = PageList.model_validate({"object": "list", "results": [], "next_cursor": "c2", "has_more": True})
    done = PageList.model_validate({"object": "list", "results": [], "next_cursor": "c2", "has_more": False})
    assert more.cursor == "c2"
    assert done.cursor is None


def test_rich_text_from_plain_derives_plain_text():
    """Request-style rich text without plain_text gets it from the content."""
    run = RichText.model_validate({"type": "text", "text": {"content": "hi"}})
    assert run.plain_text == "hi"
    assert RichText.from_plain("x", href="https://a").text.link.url == "https://a"


# --- Query payloads ---


def test_database_filter_passes_json_through():
    """Filters are forwarded unmodified, key order and booleans included."""
    raw = {"and": [{"property": "Done", "checkbox": {"equals": True}}, {"property": "Count", "number": {"gt": 1}}]}
    database_filter = DatabaseFilter.model_validate(raw)
    wire = database_filter.to_wire()
    assert wire == raw
    assert list(wire) == ["and"]
    assert wire["and"][0]["checkbox"]["equals"] is True


def test_database_filter_from_json_text():
    """Filters can be parsed straight from JSON text."""
    database_filter = DatabaseFilter.model_validate_json('{"property": "Name", "title": {"contains": "x"}}')
    assert database_filter.to_wire()["title"] == {"contains": "x"}


def test_database_sort_needs_exactly_one_key():
    """Sorts name a property or a timestamp, never both or neither."""
    assert DatabaseSort(property="Name").to_wire() == {"property": "Name", "direction": "ascending"}
    assert DatabaseSort(timestamp="created_time", direction=SortDirection.DESCENDING).to_wire() == {
        "timestamp": "created_time",
        "direction": "descending",
    }
    with pytest.raises(ValidationError):
        DatabaseSort()
    with pytest.raises(ValidationError):
        DatabaseSort(property="Name", timestamp="created_time")


def test_search_payloads():
    """Search filter and sort encode to Notion's fixed shapes."""
    assert SearchFilter(value="database").to_wire() == {"value": "database", "property": "object"}
    assert SearchSort().to_wire() == {"direction": "descending", "timestamp": "last_edited_time"}
