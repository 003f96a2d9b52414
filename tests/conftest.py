from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.config import Settings
from src.main import create_app


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "images"


@pytest.fixture
def test_settings(storage_dir: Path) -> Settings:
    return Settings(storage_dir=str(storage_dir), bearer_token="test-secret", max_upload_bytes=1_000_000)


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
