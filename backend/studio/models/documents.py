"""Document, voice session and collection records."""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from backend.studio.models.common import CamelModel, DocumentStatus, Platform, utcnow
from backend.studio.models.users import User


class GeneratedContent(CamelModel):
    """Per-document cache of model outputs, one slot per platform."""

    blog: str | None = None
    linkedin: str | None = None
    twitter: str | None = None
    podcast: str | None = None
    twitter_thread: list[str] | None = None

    def get_platform(self, platform: Platform) -> str | None:
        """Return the saved output for one platform."""
        value: str | None = getattr(self, platform.value)
        return value

    def with_platform(self, platform: Platform, text: str) -> "GeneratedContent":
        """Copy with a single platform slot replaced."""
        return self.model_copy(update={platform.value: text})


class Document(CamelModel):
    """One unit of authored content built from voice sessions."""

    id: str
    user_id: str
    title: str
    input_language: str = "en"
    output_language: str = "en"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    total_sessions: int = 0
    total_duration: float = 0
    word_count: int = 0
    status: DocumentStatus = DocumentStatus.draft
    generated_content: GeneratedContent | None = None
    has_generated_content: bool = False
    requires_regeneration: bool = False
    generated_at: datetime | None = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, value: Any) -> str:
        # Older collections stored numeric user ids.
        return str(value)


class VoiceSession(CamelModel):
    """One recorded segment of speech belonging to a document."""

    id: str
    document_id: str
    session_number: int = Field(..., ge=1)
    transcript: str = ""
    duration: float = Field(0, ge=0)
    timestamp: datetime = Field(default_factory=utcnow)
    notes: str | None = None


class DocumentWithSessions(Document):
    """Document plus its sessions in ascending session order."""

    sessions: list[VoiceSession] = Field(default_factory=list)


class CollectionData(CamelModel):
    """Shape of one partition's JSON blob."""

    users: list[User] = Field(default_factory=list)
    user_documents: list[Document] = Field(default_factory=list)
    voice_sessions: list[VoiceSession] = Field(default_factory=list)

    @field_validator("users", "user_documents", "voice_sessions", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_json(self) -> dict[str, Any]:
        """Serialize to the stored camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)


class CreateDocument(CamelModel):
    """Input for creating a document."""

    title: str = Field(..., min_length=1, max_length=200)
    # None: the owner's preferred language, else "en"
    input_language: str | None = None
    output_language: str | None = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return _non_blank_title(value)


class DocumentUpdate(CamelModel):
    """Editable document attributes."""

    title: str | None = Field(None, min_length=1, max_length=200)
    input_language: str | None = None
    output_language: str | None = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str | None) -> str | None:
        return None if value is None else _non_blank_title(value)


def _non_blank_title(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("title must not be blank")
    return stripped


class SessionCreate(CamelModel):
    """Input for recording a new session."""

    transcript: str
    duration: float = Field(0, ge=0)
    notes: str | None = None


class SessionUpdate(CamelModel):
    """Editable session attributes."""

    transcript: str | None = None
    duration: float | None = Field(None, ge=0)
    notes: str | None = None


class SessionAppend(CamelModel):
    """Newly recorded text appended to an existing session."""

    text: str = Field(..., min_length=1)
    duration: float = Field(0, ge=0)
