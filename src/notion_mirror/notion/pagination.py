"""Cursor-following list accumulation.

Notion list endpoints return at most 100 results plus ``next_cursor`` and
``has_more``. ``collect_paginated`` keeps asking for the next page until the
listing is exhausted or the caller's limit is reached. A failure on any page
propagates and discards what was gathered so far.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from notion_mirror.models.items import PaginatedList
from notion_mirror.notion.client import NotionAPI

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGE_SIZE = 100


async def fetch_list_page(
    api: NotionAPI,
    method: str,
    path: str,
    list_model: type[PaginatedList[T]],
    cursor: str | None,
    *,
    query: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
) -> PaginatedList[T]:
    """Fetch one page of a list endpoint.

    GET endpoints take ``start_cursor``/``page_size`` in the query string;
    POST endpoints (query, search) take them in the JSON body.
    """
    if method == "GET":
        query = dict(query or {})
        query["page_size"] = str(PAGE_SIZE)
        if cursor:
            query["start_cursor"] = cursor
    else:
        body = dict(body or {})
        body["page_size"] = PAGE_SIZE
        if cursor:
            body["start_cursor"] = cursor
    return await api.fetch(method, path, list_model.model_validate, query=query, body=body)


async def collect_paginated(
    fetch_page: Callable[[str | None], Awaitable[PaginatedList[T]]],
    limit: int | None = None,
) -> list[T]:
    """Accumulate results across pages in server order.

    Args:
        fetch_page: Performs one request for the given cursor (None first).
        limit: Stop once this many results are collected. ``0`` or less
            returns an empty list without a request.

    Returns:
        Results from every page, truncated to ``limit``.
    """
    if limit is not None and limit <= 0:
        return []

    results: list[T] = []
    cursor: str | None = None
    pages = 0
    while True:
        page = await fetch_page(cursor)
        pages += 1
        results.extend(page.results)
        if limit is not None and len(results) >= limit:
            return results[:limit]
        cursor = page.cursor
        if cursor is None:
            break

    logger.debug("Collected %d results over %d pages", len(results), pages)
    return results
