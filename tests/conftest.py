"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient

from notion_mirror.app import app
from notion_mirror.notion.client import reset_client


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a TestClient for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def _reset_notion_api():
    """Drop the cached NotionAPI between tests."""
    reset_client()
    yield
    reset_client()
