"""Notion API access: retrying fetch, pagination, block trees and operations."""

from notion_mirror.notion.client import NotionAPI, get_notion_api, parse_retry_after, reset_client
from notion_mirror.notion.pagination import collect_paginated, fetch_list_page
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
    update_block,
    update_page,
)
from notion_mirror.notion.tree import build_block_tree, materialize_blocks

__all__ = [
    "append_block_children",
    "build_block_tree",
    "collect_paginated",
    "create_comment",
    "create_page",
    "delete_block",
    "fetch_block_children",
    "fetch_blocks",
    "fetch_comments",
    "fetch_databases",
    "fetch_list_page",
    "fetch_pages",
    "fetch_users",
    "get_notion_api",
    "materialize_blocks",
    "NotionAPI",
    "parse_retry_after",
    "reset_client",
    "retrieve_database",
    "retrieve_page",
    "retrieve_user",
    "search",
    "update_block",
    "update_page",
]
