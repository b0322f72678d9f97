"""Pytest fixtures for integration tests.

The HTTP tests run the FastAPI application in-process through httpx's
ASGI transport. Each test gets its own studio service backed by a JSON
document in a temporary directory.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from studioplan.config import StorageConfig, StudioplanConfig
from studioplan.studio.service import StudioService
from studioplan.studio.store import StudioStore
from studioplan.web.app import create_app


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Location of the studio document for this test."""
    return tmp_path / "studio.json"


@pytest.fixture
def test_config(data_file: Path) -> StudioplanConfig:
    """Configuration pointing storage at the temporary document."""
    return StudioplanConfig(storage=StorageConfig(data_file=data_file))


@pytest.fixture
def service(test_config: StudioplanConfig) -> StudioService:
    """Studio service persisting to the temporary document."""
    return StudioService(store=StudioStore(test_config.storage.data_file))


@pytest.fixture
def app(test_config: StudioplanConfig, service: StudioService) -> FastAPI:
    """Application under test."""
    return create_app(test_config, service=service)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the application.

    Yields:
        AsyncClient configured for the test app.
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
