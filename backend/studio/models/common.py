"""Common types and enums shared across all models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Timezone-aware current time used for every stored timestamp."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model whose JSON form uses camelCase keys.

    Stored collections and the HTTP surface both speak camelCase
    (``userDocuments``, ``sessionNumber``); Python code uses snake_case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentStatus(str, Enum):
    """Workflow state of a document; also names the partition holding it."""

    draft = "draft"
    completed = "completed"


class Platform(str, Enum):
    """Target platform for generated content."""

    blog = "blog"
    linkedin = "linkedin"
    twitter = "twitter"
    podcast = "podcast"


class StorageBackend(str, Enum):
    """Physical backend serving the collections."""

    local = "local"
    object_store = "object-store"
