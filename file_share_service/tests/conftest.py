import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from typing import AsyncGenerator

import pytest
import pytest_asyncio
import httpx
from httpx import AsyncClient

from main import app
from config import settings
from file_repository import FileRepository, get_file_repository
from metadata_store import MetadataStore, get_metadata_store

@pytest.fixture(scope="function")
def mock_fss_settings(tmp_path, monkeypatch):
    mock_storage_path = tmp_path / "uploads_test"
    mock_storage_path.mkdir()
    monkeypatch.setattr(settings, 'STORAGE_BASE_PATH', mock_storage_path)
    monkeypatch.setattr(settings, 'METADATA_FILE', tmp_path / "files-metadata-test.json")
    return settings

@pytest.fixture(scope="function")
def file_repository(mock_fss_settings) -> FileRepository:
    repository = FileRepository(mock_fss_settings.STORAGE_BASE_PATH)
    repository.ensure_directory()
    return repository

@pytest.fixture(scope="function")
def metadata_store(mock_fss_settings) -> MetadataStore:
    store = MetadataStore(mock_fss_settings.METADATA_FILE)
    store.load()
    return store

@pytest_asyncio.fixture(scope="function")
async def async_client(
    metadata_store: MetadataStore,
    file_repository: FileRepository
) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_metadata_store] = lambda: metadata_store
    app.dependency_overrides[get_file_repository] = lambda: file_repository

    transport = httpx.ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testfss") as client:
        yield client

    app.dependency_overrides.clear()
