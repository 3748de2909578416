"""Models package - re-exports for convenience."""

from backend.studio.models.common import (
    CamelModel,
    DocumentStatus,
    Platform,
    StorageBackend,
    utcnow,
)
from backend.studio.models.content import (
    ChatMessage,
    Completion,
    GenerateContentRequest,
    GeneratedContentSet,
    RefineContentRequest,
    RefineContentResponse,
)
from backend.studio.models.documents import (
    CollectionData,
    CreateDocument,
    Document,
    DocumentUpdate,
    DocumentWithSessions,
    GeneratedContent,
    SessionAppend,
    SessionCreate,
    SessionUpdate,
    VoiceSession,
)
from backend.studio.models.users import (
    CreateUser,
    PreferencesUpdate,
    User,
    UserPreferences,
)

__all__ = [
    # Common
    "CamelModel",
    "DocumentStatus",
    "Platform",
    "StorageBackend",
    "utcnow",
    # Documents
    "CollectionData",
    "CreateDocument",
    "Document",
    "DocumentUpdate",
    "DocumentWithSessions",
    "GeneratedContent",
    "SessionAppend",
    "SessionCreate",
    "SessionUpdate",
    "VoiceSession",
    # Users
    "CreateUser",
    "PreferencesUpdate",
    "User",
    "UserPreferences",
    # Content
    "ChatMessage",
    "Completion",
    "GenerateContentRequest",
    "GeneratedContentSet",
    "RefineContentRequest",
    "RefineContentResponse",
]
