"""Application bootstrap - service construction for FastAPI dependencies.

Process-wide objects (storage with its partition locks, the model
provider) are built once and cached; the thin services on top are built
per request. Tests replace any of these through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from backend.studio.config import Settings, get_settings
from backend.studio.content.generator import ContentGenerator
from backend.studio.documents.repository import DocumentRepository
from backend.studio.llm.client import ChatProvider, get_llm_provider
from backend.studio.services.workflow import ContentWorkflow
from backend.studio.storage.hybrid import HybridStorageService


@lru_cache
def get_storage() -> HybridStorageService:
    """Get the cached storage service."""
    return HybridStorageService.from_settings(get_settings())


@lru_cache
def get_provider() -> ChatProvider:
    """Get the cached chat provider."""
    return get_llm_provider(get_settings())


def get_repository(
    storage: Annotated[HybridStorageService, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DocumentRepository:
    return DocumentRepository.from_settings(storage, settings)


def get_generator(
    provider: Annotated[ChatProvider, Depends(get_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ContentGenerator:
    return ContentGenerator.from_settings(provider, settings)


def get_workflow(
    repository: Annotated[DocumentRepository, Depends(get_repository)],
    generator: Annotated[ContentGenerator, Depends(get_generator)],
) -> ContentWorkflow:
    return ContentWorkflow(repository, generator)
