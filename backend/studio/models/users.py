"""User records stored alongside the draft collection."""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from backend.studio.models.common import CamelModel, utcnow

DEFAULT_AVATAR_URL = (
    "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e"
    "?w=150&h=150&fit=crop&crop=face"
)


class UserPreferences(CamelModel):
    """Per-user defaults for new documents and the UI."""

    default_input_language: str = "en"
    default_output_language: str = "en"
    theme: str = "light"


class User(CamelModel):
    """Demo user record.

    Unknown keys written by older tooling are preserved on save.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    role: str = "user"
    avatar: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    last_login: datetime | None = None
    is_active: bool = True
    preferences: UserPreferences = Field(default_factory=UserPreferences)

    @field_validator("preferences", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any) -> Any:
        return {} if value is None else value


class CreateUser(CamelModel):
    """Registration body; every field falls back to a generated default."""

    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None
    avatar: str | None = None
    default_input_language: str | None = None
    default_output_language: str | None = None
    theme: str | None = None


class PreferencesUpdate(CamelModel):
    """Partial preferences; omitted fields keep their current value."""

    default_input_language: str | None = None
    default_output_language: str | None = None
    theme: str | None = None
