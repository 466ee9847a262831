"""FastAPI application exposing Notion content as markdown and JSON."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from notion_mirror.config import get_settings
from notion_mirror.errors import (
    DataCorruptedError,
    DecodeError,
    EncodeError,
    InvalidEndpointError,
    InvalidResponseError,
    InvalidResponseStatusError,
    MissingTokenError,
    NotionMirrorError,
    RateLimitExceededError,
    RequestFailedError,
)
from notion_mirror.logging_config import configure_logging
from notion_mirror.notion.service import (
    fetch_blocks,
    fetch_databases,
    fetch_pages,
    retrieve_page,
    search,
)
from notion_mirror.render.formats import OutputFormat, flatten_items, get_renderer
from notion_mirror.render.markdown import MarkdownRenderer

_MEDIA_TYPES = {
    OutputFormat.ID: "text/plain",
    OutputFormat.JSON: "application/json",
    OutputFormat.JSONL: "application/x-ndjson",
    OutputFormat.SMALL_JSONL: "application/x-ndjson",
    OutputFormat.MARKDOWN: "text/markdown",
}

_ERROR_STATUS: dict[type[NotionMirrorError], int] = {
    MissingTokenError: 500,
    EncodeError: 500,
    InvalidEndpointError: 400,
    RateLimitExceededError: 429,
    InvalidResponseStatusError: 502,
    InvalidResponseError: 502,
    DecodeError: 502,
    DataCorruptedError: 502,
    RequestFailedError: 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging and load config on startup."""
    settings = get_settings()
    configure_logging(settings.log_level)
    app.state.settings = settings
    yield


app = FastAPI(
    title="Notion Mirror",
    lifespan=lifespan,
)


@app.exception_handler(NotionMirrorError)
async def notion_error_handler(request: Request, exc: NotionMirrorError) -> JSONResponse:
    """Report call-level Notion failures as JSON with a matching status code."""
    status_code = _ERROR_STATUS.get(type(exc), 500)
    content: dict = {"error": type(exc).__name__, "detail": str(exc)}
    headers = {}
    if isinstance(exc, InvalidResponseStatusError):
        content["upstream_status"] = exc.status
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(int(exc.retry_after))
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _rendered(items, output_format: OutputFormat) -> PlainTextResponse:
    body = get_renderer(output_format).render(items)
    return PlainTextResponse(body, media_type=_MEDIA_TYPES[output_format])


@app.get("/health")
async def health():
    """Health check endpoint for local development and deployments."""
    return {
        "status": "ok",
        "service": "notion-mirror",
        "version": "0.1.0",
    }


@app.get("/pages/{page_id}/markdown")
async def page_markdown(
    page_id: str,
    ignore_color: bool = False,
    ignore_underline: bool = False,
):
    """Render a page title, properties and full block tree as markdown."""
    page = await retrieve_page(page_id)
    blocks = await fetch_blocks(page_id)
    renderer = MarkdownRenderer(ignore_color=ignore_color, ignore_underline=ignore_underline)
    return PlainTextResponse(renderer.render([page, *blocks]), media_type="text/markdown")


@app.get("/databases")
async def list_databases(
    format: OutputFormat = OutputFormat.SMALL_JSONL,
    limit: int | None = Query(default=None, ge=1),
):
    """List databases shared with the integration."""
    return _rendered(await fetch_databases(limit=limit), format)


@app.get("/databases/{database_id}/pages")
async def list_database_pages(
    database_id: str,
    format: OutputFormat = OutputFormat.SMALL_JSONL,
    limit: int | None = Query(default=None, ge=1),
):
    """List the pages of one database."""
    return _rendered(await fetch_pages(database_id, limit=limit), format)


@app.get("/blocks/{block_id}")
async def block_tree(
    block_id: str,
    format: OutputFormat = OutputFormat.JSONL,
):
    """Materialize a block tree and render it (flattened for non-markdown formats)."""
    blocks = await fetch_blocks(block_id)
    items = blocks if format is OutputFormat.MARKDOWN else flatten_items(blocks)
    return _rendered(items, format)


@app.get("/search")
async def search_endpoint(
    query: str | None = None,
    format: OutputFormat = OutputFormat.SMALL_JSONL,
    limit: int | None = Query(default=None, ge=1),
):
    """Search page and database titles."""
    return _rendered(await search(query, limit=limit), format)
