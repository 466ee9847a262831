"""Notion operations used by the HTTP surface and other callers.

Each function resolves the shared ``NotionAPI``, issues one or more requests
and returns typed models. Reads retry on rate limits and server errors.
Writes (create, update, append, delete) are sent once and never retried,
since a timed-out write may already have been applied.
"""

import logging
from typing import Any

from notion_mirror.config import get_settings
from notion_mirror.errors import InvalidEndpointError
from notion_mirror.models.blocks import Block
from notion_mirror.models.common import RichText
from notion_mirror.models.items import (
    BlockList,
    Comment,
    CommentList,
    Database,
    DatabaseList,
    Page,
    PageList,
    SearchResultList,
    UserList,
)
from notion_mirror.models.properties import Property
from notion_mirror.models.query import DatabaseFilter, DatabaseSort, SearchFilter, SearchSort
from notion_mirror.models.user import User
from notion_mirror.notion.client import get_notion_api
from notion_mirror.notion.pagination import collect_paginated, fetch_list_page
from notion_mirror.notion.tree import materialize_blocks

logger = logging.getLogger(__name__)

_BLOCK_BATCH_SIZE = 100


def _require_id(value: str, name: str) -> str:
    if not value or not value.strip():
        raise InvalidEndpointError(f"{name} must not be empty")
    return value.strip()


def _property_payload(properties: dict[str, Property | dict]) -> dict[str, dict]:
    return {
        name: prop.to_wire() if isinstance(prop, Property) else prop
        for name, prop in properties.items()
    }


def block_create_payload(block: Block) -> dict:
    """Request body for re-creating ``block``: type and payload, no identity."""
    return {"object": "block", "type": block.type, block.type: block.content.to_wire()}


def unwrap_children(children: Any) -> list:
    """Accept a bare children array or a ``{"children": [...]}`` wrapper.

    ``Block`` instances are converted to create payloads; dicts pass through.

    Raises:
        InvalidEndpointError: If ``children`` is neither shape.
    """
    if isinstance(children, dict) and isinstance(children.get("children"), list):
        children = children["children"]
    if not isinstance(children, list):
        raise InvalidEndpointError("children must be a list or an object with a 'children' list")
    return [block_create_payload(child) if isinstance(child, Block) else child for child in children]


def _rich_text_payload(text: str | list[RichText]) -> list[dict]:
    runs = [RichText.from_plain(text)] if isinstance(text, str) else text
    return [run.to_wire() for run in runs]


# --- Databases and pages ---


async def fetch_databases(limit: int | None = None) -> list[Database]:
    """List every database shared with the integration."""
    api = await get_notion_api()
    body = {"filter": SearchFilter(value="database").to_wire()}
    return await collect_paginated(
        lambda cursor: fetch_list_page(api, "POST", "search", DatabaseList, cursor, body=body),
        limit,
    )


async def retrieve_database(database_id: str) -> Database:
    """Fetch one database, including its property schema."""
    api = await get_notion_api()
    database_id = _require_id(database_id, "database_id")
    return await api.fetch("GET", f"databases/{database_id}", Database.model_validate)


async def fetch_pages(
    database_id: str | None = None,
    *,
    filter: DatabaseFilter | None = None,
    sorts: list[DatabaseSort] | None = None,
    limit: int | None = None,
) -> list[Page]:
    """List pages of a database, or every shared page when no database is given.

    Args:
        database_id: Database to query. None searches the whole workspace.
        filter: Database query filter, forwarded unmodified.
        sorts: Database query sorts.
        limit: Maximum number of pages to return.

    Raises:
        InvalidEndpointError: ``filter`` or ``sorts`` given without a database.
    """
    api = await get_notion_api()
    body: dict[str, Any] = {}
    if database_id is None:
        if filter is not None or sorts:
            raise InvalidEndpointError("filter and sorts require a database_id")
        body["filter"] = SearchFilter(value="page").to_wire()
        path = "search"
    else:
        path = f"databases/{_require_id(database_id, 'database_id')}/query"
        if filter is not None:
            body["filter"] = filter.to_wire()
        if sorts:
            body["sorts"] = [sort.to_wire() for sort in sorts]

    return await collect_paginated(
        lambda cursor: fetch_list_page(api, "POST", path, PageList, cursor, body=body),
        limit,
    )


async def retrieve_page(page_id: str) -> Page:
    """Fetch one page with its property values but not its content blocks."""
    api = await get_notion_api()
    page_id = _require_id(page_id, "page_id")
    return await api.fetch("GET", f"pages/{page_id}", Page.model_validate)


async def update_page(
    page_id: str,
    *,
    properties: dict[str, Property | dict] | None = None,
    archived: bool | None = None,
) -> Page:
    """Update page properties and/or archive state. Sent once, never retried."""
    api = await get_notion_api()
    page_id = _require_id(page_id, "page_id")
    body: dict[str, Any] = {}
    if properties is not None:
        body["properties"] = _property_payload(properties)
    if archived is not None:
        body["archived"] = archived
    if not body:
        raise InvalidEndpointError("update_page needs properties or archived")
    page = await api.fetch("PATCH", f"pages/{page_id}", Page.model_validate, body=body, retry=False)
    logger.info("Updated Notion page: %s", page.id)
    return page


async def create_page(
    database_id: str,
    properties: dict[str, Property | dict],
    children: Any = None,
) -> Page:
    """Create a page in a database, with optional body blocks.

    Notion accepts at most 100 children per request: the first batch goes
    with the create call and the rest are appended in batches.
    """
    api = await get_notion_api()
    database_id = _require_id(database_id, "database_id")
    blocks = unwrap_children(children) if children is not None else []

    body: dict[str, Any] = {
        "parent": {"database_id": database_id},
        "properties": _property_payload(properties),
    }
    if blocks:
        body["children"] = blocks[:_BLOCK_BATCH_SIZE]
    page = await api.fetch("POST", "pages", Page.model_validate, body=body, retry=False)

    overflow = blocks[_BLOCK_BATCH_SIZE:]
    if overflow:
        await append_block_children(page.id, overflow)

    logger.info("Created Notion page: %s (%d blocks)", page.id, len(blocks))
    return page


# --- Blocks ---


async def fetch_block_children(block_id: str, limit: int | None = None) -> list[Block]:
    """Direct children of a block or page, without descending further."""
    api = await get_notion_api()
    block_id = _require_id(block_id, "block_id")
    return await collect_paginated(
        lambda cursor: fetch_list_page(api, "GET", f"blocks/{block_id}/children", BlockList, cursor),
        limit,
    )


async def fetch_blocks(root_id: str) -> list[Block]:
    """Full block tree below a page or block."""
    api = await get_notion_api()
    settings = get_settings()
    return await materialize_blocks(
        api,
        _require_id(root_id, "root_id"),
        max_depth=settings.max_block_depth,
        concurrency=settings.block_fetch_concurrency,
    )


async def append_block_children(block_id: str, children: Any) -> list[Block]:
    """Append blocks under ``block_id``, 100 per request.

    Args:
        block_id: Parent block or page.
        children: Bare list of block payloads (or ``Block`` values), or a
            ``{"children": [...]}`` wrapper.

    Returns:
        The blocks Notion reports for each batch, concatenated.
    """
    api = await get_notion_api()
    block_id = _require_id(block_id, "block_id")
    blocks = unwrap_children(children)

    appended: list[Block] = []
    for i in range(0, len(blocks), _BLOCK_BATCH_SIZE):
        batch = blocks[i : i + _BLOCK_BATCH_SIZE]
        result = await api.fetch(
            "PATCH",
            f"blocks/{block_id}/children",
            BlockList.model_validate,
            body={"children": batch},
            retry=False,
        )
        appended.extend(result.results)
    logger.info("Appended %d blocks to %s", len(blocks), block_id)
    return appended


async def update_block(block_id: str, payload: dict[str, Any]) -> Block:
    """Patch a block, e.g. ``{"paragraph": {"rich_text": [...]}}``."""
    api = await get_notion_api()
    block_id = _require_id(block_id, "block_id")
    return await api.fetch("PATCH", f"blocks/{block_id}", Block.model_validate, body=payload, retry=False)


async def delete_block(block_id: str) -> Block:
    """Move a block to the trash. Returns the archived block."""
    api = await get_notion_api()
    block_id = _require_id(block_id, "block_id")
    block = await api.fetch("DELETE", f"blocks/{block_id}", Block.model_validate, retry=False)
    logger.info("Deleted Notion block: %s", block.id)
    return block


# --- Comments, search, users ---


async def fetch_comments(block_id: str, limit: int | None = None) -> list[Comment]:
    """Unresolved comments on a page or block."""
    api = await get_notion_api()
    query = {"block_id": _require_id(block_id, "block_id")}
    return await collect_paginated(
        lambda cursor: fetch_list_page(api, "GET", "comments", CommentList, cursor, query=query),
        limit,
    )


async def create_comment(
    text: str | list[RichText],
    *,
    page_id: str | None = None,
    discussion_id: str | None = None,
) -> Comment:
    """Start a discussion on a page or reply to an existing discussion.

    Raises:
        InvalidEndpointError: Unless exactly one of ``page_id`` and
            ``discussion_id`` is given.
    """
    if (page_id is None) == (discussion_id is None):
        raise InvalidEndpointError("create_comment needs exactly one of page_id or discussion_id")
    api = await get_notion_api()
    body: dict[str, Any] = {"rich_text": _rich_text_payload(text)}
    if page_id is not None:
        body["parent"] = {"page_id": _require_id(page_id, "page_id")}
    else:
        body["discussion_id"] = _require_id(discussion_id, "discussion_id")
    return await api.fetch("POST", "comments", Comment.model_validate, body=body, retry=False)


async def search(
    query: str | None = None,
    *,
    filter: SearchFilter | None = None,
    sort: SearchSort | None = None,
    limit: int | None = None,
) -> list[Page | Database]:
    """Search pages and databases by title."""
    api = await get_notion_api()
    body: dict[str, Any] = {}
    if query:
        body["query"] = query
    if filter is not None:
        body["filter"] = filter.to_wire()
    if sort is not None:
        body["sort"] = sort.to_wire()
    return await collect_paginated(
        lambda cursor: fetch_list_page(api, "POST", "search", SearchResultList, cursor, body=body),
        limit,
    )


async def fetch_users(limit: int | None = None) -> list[User]:
    """List workspace users and bots, following cursors up to ``limit``."""
    api = await get_notion_api()
    return await collect_paginated(
        lambda cursor: fetch_list_page(api, "GET", "users", UserList, cursor),
        limit,
    )


async def retrieve_user(user_id: str) -> User:
    """Fetch one user or bot by id."""
    api = await get_notion_api()
    user_id = _require_id(user_id, "user_id")
    return await api.fetch("GET", f"users/{user_id}", User.model_validate)
