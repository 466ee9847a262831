"""Recursive block tree materialization.

Fetches a block's children, then the children of every child that reports
``has_children``, depth-first. Blocks are frozen, so each expanded block is a
copy with its subtree attached. Siblings keep the order the API returned them
in, whether they are expanded one at a time or concurrently.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from notion_mirror.errors import DataCorruptedError
from notion_mirror.models.blocks import Block
from notion_mirror.models.items import BlockList
from notion_mirror.notion.client import NotionAPI
from notion_mirror.notion.pagination import collect_paginated, fetch_list_page

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

ChildFetcher = Callable[[str], Awaitable[list[Block]]]


def children_fetcher(api: NotionAPI) -> ChildFetcher:
    """Return a fetcher listing every direct child of a block or page."""

    async def fetch_children(block_id: str) -> list[Block]:
        return await collect_paginated(
            lambda cursor: fetch_list_page(api, "GET", f"blocks/{block_id}/children", BlockList, cursor)
        )

    return fetch_children


async def build_block_tree(
    fetch_children: ChildFetcher,
    root_id: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    concurrency: int = 1,
) -> list[Block]:
    """Materialize the block tree below ``root_id``.

    Args:
        fetch_children: Lists the direct children of an id.
        root_id: Page or block whose descendants to fetch.
        max_depth: Deepest nesting level allowed below the root.
        concurrency: How many sibling subtrees may be fetched at once.
            ``1`` fetches strictly depth-first. When one subtree fails, the
            others are cancelled before the error is raised.

    Returns:
        The root's children with every ``children`` list populated.

    Raises:
        DataCorruptedError: A block lists one of its own ancestors as a
            child, or nesting exceeds ``max_depth``.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def expand(block_id: str, depth: int, ancestors: frozenset[str]) -> list[Block]:
        if depth > max_depth:
            raise DataCorruptedError(block_id, f"nesting deeper than {max_depth} levels")
        async with semaphore:
            blocks = await fetch_children(block_id)
        path = ancestors | {block_id}

        async def attach(block: Block) -> Block:
            if not block.has_children:
                return block
            if block.id in path:
                raise DataCorruptedError(block.id, "block is its own ancestor")
            return block.with_children(await expand(block.id, depth + 1, path))

        if concurrency <= 1:
            return [await attach(block) for block in blocks]
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(attach(block)) for block in blocks]
        except ExceptionGroup as errors:
            raise errors.exceptions[0]
        return [task.result() for task in tasks]

    tree = await expand(root_id, 0, frozenset())
    logger.debug("Materialized block tree for %s", root_id, extra={"block_id": root_id})
    return tree


async def materialize_blocks(
    api: NotionAPI,
    root_id: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    concurrency: int = 1,
) -> list[Block]:
    """Materialize the tree below ``root_id`` using ``api`` for every listing."""
    return await build_block_tree(
        children_fetcher(api),
        root_id,
        max_depth=max_depth,
        concurrency=concurrency,
    )
