"""Tests for the Notion operations layer over a mock transport."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from notion_mirror.errors import InvalidEndpointError, RateLimitExceededError
from notion_mirror.models.blocks import Block
from notion_mirror.models.items import Database, Page
from notion_mirror.models.properties import CheckboxProperty, NullProperty
from notion_mirror.models.query import DatabaseFilter, DatabaseSort, SearchFilter
from notion_mirror.notion.client import NotionAPI
from notion_mirror.notion.service import (
    append_block_children,
    create_comment,
    create_page,
    delete_block,
    fetch_block_children,
    fetch_blocks,
    fetch_comments,
    fetch_databases,
    fetch_pages,
    fetch_users,
    retrieve_database,
    retrieve_page,
    retrieve_user,
    search,
    unwrap_children,
    update_block,
    update_page,
)


def _text(content: str) -> list[dict]:
    return [{"type": "text", "text": {"content": content}, "plain_text": content}]


def _page_json(page_id: str = "p1", title: str = "Hello") -> dict:
    return {
        "object": "page",
        "id": page_id,
        "parent": {"type": "database_id", "database_id": "db1"},
        "properties": {"Name": {"id": "title", "type": "title", "title": _text(title)}},
    }


def _database_json(database_id: str = "db1") -> dict:
    return {
        "object": "database",
        "id": database_id,
        "title": _text("Tasks"),
        "properties": {"Name": {"id": "title", "type": "title", "title": {}}},
    }


def _block_json(block_id: str, has_children: bool = False) -> dict:
    return {
        "object": "block",
        "id": block_id,
        "type": "paragraph",
        "has_children": has_children,
        "paragraph": {"rich_text": _text(block_id), "color": "default"},
    }


def _list_json(results: list, next_cursor: str | None = None) -> dict:
    return {"object": "list", "results": results, "next_cursor": next_cursor, "has_more": next_cursor is not None}


class _Routes:
    """Mock transport that answers by ``(method, path)`` and records requests."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes[(request.method, request.url.path.removeprefix("/v1/"))]
        if callable(answer):
            answer = answer(request)
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    def bodies(self) -> list[dict]:
        return [json.loads(request.content) if request.content else None for request in self.requests]

    def api(self) -> NotionAPI:
        async def no_sleep(_seconds: float) -> None:
            return None

        return NotionAPI("token", http_client=httpx.AsyncClient(transport=httpx.MockTransport(self)), sleep=no_sleep)


def _patch_api(routes: _Routes):
    """Patch the shared API accessor to return a NotionAPI over ``routes``."""
    return patch("notion_mirror.notion.service.get_notion_api", new_callable=AsyncMock, return_value=routes.api())


# --- Reads ---


async def test_fetch_databases_searches_for_databases():
    """Databases come from search filtered to the database object type."""
    routes = _Routes({("POST", "search"): _list_json([_database_json("db1"), _database_json("db2")])})

    with _patch_api(routes):
        databases = await fetch_databases()

    assert [db.id for db in databases] == ["db1", "db2"]
    assert all(isinstance(db, Database) for db in databases)
    assert routes.bodies()[0]["filter"] == {"value": "database", "property": "object"}


async def test_retrieve_database_and_page():
    """Single-object reads hit their id paths."""
    routes = _Routes({("GET", "databases/db1"): _database_json(), ("GET", "pages/p1"): _page_json()})

    with _patch_api(routes):
        database = await retrieve_database("db1")
        page = await retrieve_page("p1")

    assert database.description == "Tasks"
    assert page.description == "Hello"


async def test_fetch_pages_queries_database_with_filter_and_sorts():
    """Filters are forwarded verbatim and sorts are encoded."""

    def paged(request: httpx.Request) -> dict:
        body = json.loads(request.content)
        if body.get("start_cursor") == "c1":
            return _list_json([_page_json("p2")])
        return _list_json([_page_json("p1")], "c1")

    routes = _Routes({("POST", "databases/db1/query"): paged})
    raw_filter = {"property": "Done", "checkbox": {"equals": True}}

    with _patch_api(routes):
        pages = await fetch_pages(
            "db1",
            filter=DatabaseFilter.model_validate(raw_filter),
            sorts=[DatabaseSort(property="Name")],
        )

    assert [page.id for page in pages] == ["p1", "p2"]
    first = routes.bodies()[0]
    assert first["filter"] == raw_filter
    assert first["sorts"] == [{"property": "Name", "direction": "ascending"}]
    assert first["page_size"] == 100
    assert routes.bodies()[1]["start_cursor"] == "c1"


async def test_fetch_pages_without_database_searches_pages():
    """No database id lists every shared page through search."""
    routes = _Routes({("POST", "search"): _list_json([_page_json()])})

    with _patch_api(routes):
        pages = await fetch_pages(limit=5)

    assert [page.id for page in pages] == ["p1"]
    assert routes.bodies()[0]["filter"] == {"value": "page", "property": "object"}


async def test_fetch_pages_filter_needs_database():
    """Query options without a database are rejected before any request."""
    routes = _Routes({})

    with _patch_api(routes), pytest.raises(InvalidEndpointError):
        await fetch_pages(filter=DatabaseFilter.model_validate({"property": "x"}))

    assert routes.requests == []


async def test_empty_id_is_rejected():
    """Blank ids never produce a request."""
    routes = _Routes({})

    with _patch_api(routes), pytest.raises(InvalidEndpointError):
        await retrieve_page("  ")

    assert routes.requests == []


async def test_fetch_block_children_is_shallow():
    """Only direct children are listed, even when they have their own."""
    routes = _Routes({("GET", "blocks/root/children"): _list_json([_block_json("A", True), _block_json("B")])})

    with _patch_api(routes):
        blocks = await fetch_block_children("root")

    assert [block.id for block in blocks] == ["A", "B"]
    assert blocks[0].children == []
    assert len(routes.requests) == 1


async def test_fetch_blocks_materializes_tree():
    """The full tree is fetched recursively."""
    routes = _Routes(
        {
            ("GET", "blocks/root/children"): _list_json([_block_json("A", True)]),
            ("GET", "blocks/A/children"): _list_json([_block_json("A1")]),
        }
    )

    with _patch_api(routes):
        blocks = await fetch_blocks("root")

    assert [child.id for child in blocks[0].children] == ["A1"]


async def test_fetch_comments_passes_block_id():
    """Comments are listed by block id in the query string."""
    comment = {"object": "comment", "id": "c1", "discussion_id": "d1", "rich_text": _text("nice")}
    routes = _Routes({("GET", "comments"): _list_json([comment])})

    with _patch_api(routes):
        comments = await fetch_comments("p1")

    assert comments[0].description == "nice"
    assert routes.requests[0].url.params["block_id"] == "p1"


async def test_search_mixes_pages_and_databases():
    """Search results keep their concrete type and request options are sent."""
    routes = _Routes({("POST", "search"): _list_json([_page_json(), _database_json()])})

    with _patch_api(routes):
        results = await search("Tas", filter=SearchFilter(value="page"), limit=10)

    assert [type(result) for result in results] == [Page, Database]
    body = routes.bodies()[0]
    assert body["query"] == "Tas"
    assert body["filter"] == {"value": "page", "property": "object"}


async def test_search_without_query_sends_no_query_key():
    routes = _Routes({("POST", "search"): _list_json([])})

    with _patch_api(routes):
        assert await search() == []

    assert "query" not in routes.bodies()[0]


async def test_users():
    """Users are listed and retrieved."""
    user = {"object": "user", "id": "u1", "type": "person", "name": "Ada"}
    routes = _Routes({("GET", "users"): _list_json([user]), ("GET", "users/u1"): user})

    with _patch_api(routes):
        users = await fetch_users()
        single = await retrieve_user("u1")

    assert [u.name for u in users] == ["Ada"]
    assert single.description == "Ada"


# --- Writes ---


async def test_update_page_encodes_typed_properties():
    """Typed properties are sent in wire form and the call is not retried."""
    routes = _Routes({("PATCH", "pages/p1"): _page_json()})

    with _patch_api(routes):
        page = await update_page("p1", properties={"Done": CheckboxProperty(id="abc", value=True)})

    assert page.id == "p1"
    assert routes.bodies()[0] == {"properties": {"Done": {"id": "abc", "type": "checkbox", "checkbox": True}}}


async def test_update_page_needs_changes():
    routes = _Routes({})

    with _patch_api(routes), pytest.raises(InvalidEndpointError):
        await update_page("p1")


async def test_update_page_can_clear_a_property():
    """A null property is sent with an explicit null value."""
    routes = _Routes({("PATCH", "pages/p1"): _page_json()})

    with _patch_api(routes):
        await update_page("p1", properties={"Due": {"date": None}}, archived=False)

    assert routes.bodies()[0] == {"properties": {"Due": {"date": None}}, "archived": False}


async def test_writes_are_not_retried():
    """A rate-limited write fails after a single attempt."""
    rate_limited = {"object": "error", "status": 429, "code": "rate_limited", "message": "slow down"}
    routes = _Routes({("PATCH", "pages/p1"): httpx.Response(429, json=rate_limited)})

    with _patch_api(routes), pytest.raises(RateLimitExceededError):
        await update_page("p1", archived=True)

    assert len(routes.requests) == 1


async def test_create_page_splits_children_over_100():
    """The first 100 children go with the create call, the rest are appended."""
    children = [{"object": "block", "type": "divider", "divider": {}} for _ in range(150)]
    routes = _Routes(
        {
            ("POST", "pages"): _page_json("new"),
            ("PATCH", "blocks/new/children"): _list_json([_block_json("x")]),
        }
    )

    with _patch_api(routes):
        page = await create_page("db1", {"Name": {"title": _text("New")}}, {"children": children})

    assert page.id == "new"
    create_body, append_body = routes.bodies()
    assert create_body["parent"] == {"database_id": "db1"}
    assert len(create_body["children"]) == 100
    assert len(append_body["children"]) == 50


async def test_append_block_children_batches():
    """Appends are chunked at 100 blocks per request."""
    children = [{"object": "block", "type": "divider", "divider": {}} for _ in range(201)]
    routes = _Routes({("PATCH", "blocks/b1/children"): _list_json([_block_json("x")])})

    with _patch_api(routes):
        appended = await append_block_children("b1", children)

    assert [len(body["children"]) for body in routes.bodies()] == [100, 100, 1]
    assert len(appended) == 3


async def test_append_accepts_block_models():
    """Block values are converted to create payloads without their identity."""
    block = Block.model_validate(_block_json("old"))
    routes = _Routes({("PATCH", "blocks/b1/children"): _list_json([_block_json("new")])})

    with _patch_api(routes):
        await append_block_children("b1", [block])

    sent = routes.bodies()[0]["children"][0]
    assert sent["type"] == "paragraph"
    assert "id" not in sent
    assert sent["paragraph"]["rich_text"][0]["text"]["content"] == "old"


def test_unwrap_children_rejects_other_shapes():
    """Only a list or a children wrapper is accepted."""
    with pytest.raises(InvalidEndpointError):
        unwrap_children({"blocks": []})
    with pytest.raises(InvalidEndpointError):
        unwrap_children("paragraph")


async def test_update_and_delete_block():
    routes = _Routes({("PATCH", "blocks/b1"): _block_json("b1"), ("DELETE", "blocks/b1"): _block_json("b1")})

    with _patch_api(routes):
        await update_block("b1", {"paragraph": {"rich_text": _text("edited")}})
        deleted = await delete_block("b1")

    assert deleted.id == "b1"
    assert routes.bodies()[0] == {"paragraph": {"rich_text": _text("edited")}}
    assert routes.requests[1].method == "DELETE"


async def test_create_comment_on_page():
    """Plain text becomes a single text run under a page parent."""
    comment = {"object": "comment", "id": "c1", "discussion_id": "d1", "rich_text": _text("hi")}
    routes = _Routes({("POST", "comments"): comment})

    with _patch_api(routes):
        created = await create_comment("hi", page_id="p1")

    assert created.discussion_id == "d1"
    body = routes.bodies()[0]
    assert body["parent"] == {"page_id": "p1"}
    assert body["rich_text"][0]["text"]["content"] == "hi"


@pytest.mark.parametrize("targets", [{}, {"page_id": "p1", "discussion_id": "d1"}])
async def test_create_comment_needs_one_target(targets):
    routes = _Routes({})

    with _patch_api(routes), pytest.raises(InvalidEndpointError):
        await create_comment("hi", **targets)


def test_null_property_payload_shape():
    """Null properties encode to their id and kind only."""
    assert NullProperty(id="x", original_kind="date").to_wire() == {"id": "x", "type": "date"}
