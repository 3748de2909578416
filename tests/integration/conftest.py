"""Fixtures wiring the FastAPI app to temporary local storage."""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from backend.studio.api.deps import get_provider, get_repository, get_storage
from backend.studio.documents.repository import DocumentRepository
from backend.studio.main import app
from backend.studio.storage.hybrid import HybridStorageService


@pytest.fixture
def client(
    storage: HybridStorageService, repository: DocumentRepository, provider: Any
) -> Iterator[TestClient]:
    """Test client with storage, repository and model provider overridden."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_provider] = lambda: provider
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
