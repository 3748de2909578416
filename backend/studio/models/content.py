"""Request/response models for content generation and refinement."""

from typing import Literal

from pydantic import BaseModel, Field

from backend.studio.models.common import CamelModel, Platform


class ChatMessage(BaseModel):
    """Role-tagged message sent to the language model."""

    role: Literal["system", "user", "assistant"]
    content: str


class Completion(BaseModel):
    """Single model response."""

    text: str = ""
    finish_reason: str | None = None
    refusal: str | None = None

    @property
    def truncated(self) -> bool:
        """True when the provider cut the output short."""
        return self.finish_reason in ("length", "content_filter")


class GenerateContentRequest(CamelModel):
    """Raw transcript generation request."""

    transcript: str = Field(..., min_length=1)
    input_language: str
    output_language: str


class GeneratedContentSet(CamelModel):
    """Per-platform outputs produced for one transcript."""

    blog_post: str
    linkedin_post: str
    twitter_post: str
    podcast_script: str
    twitter_thread: list[str] | None = None


class RefineContentRequest(CamelModel):
    """Refinement of one platform's output by free-text instruction."""

    transcript: str
    input_language: str
    output_language: str
    platform: Platform
    instruction: str = Field(..., min_length=1)
    current_output: str | None = None


class RefineContentResponse(CamelModel):
    """Refined platform output."""

    refined: str
