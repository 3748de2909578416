"""Chat-completion providers with OpenAI integration.

Security: Reads API key from environment only, never hardcoded.
Provides a deterministic stub when no key is present (tests, offline dev).
"""

import logging
from typing import Any, Protocol

from openai import AsyncOpenAI, BadRequestError, OpenAIError

from backend.studio.config import Settings
from backend.studio.errors import ContextLengthExceededError, ProviderFailureError
from backend.studio.models import ChatMessage, Completion

logger = logging.getLogger(__name__)

_CONTEXT_ERROR_HINTS = ("context", "maximum context", "token")


def supports_sampling_params(model: str) -> bool:
    """Whether the model family accepts explicit max_tokens/temperature.

    Newer (gpt-5) models reject both parameters.
    """
    return "gpt-5" not in model.lower()


def looks_like_context_error(message: str) -> bool:
    """Heuristic for "prompt too large" errors whose code is not reported."""
    lowered = message.lower()
    return any(hint in lowered for hint in _CONTEXT_ERROR_HINTS)


class ChatProvider(Protocol):
    """Protocol for language model provider implementations."""

    model: str

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion:
        """Run one chat completion.

        Args:
            messages: Ordered role-tagged conversation
            max_tokens: Output cap (None = provider default)
            temperature: Sampling temperature (None = provider default)

        Returns:
            Completion with text, finish reason and structured refusal (if any)

        Raises:
            ContextLengthExceededError: Prompt exceeds the model's context window
            ProviderFailureError: Any other provider failure
        """
        ...


class DeterministicStubProvider:
    """Deterministic stub provider for testing (no API key required)."""

    model = "stub"

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion:
        """Echo an excerpt of the last user turn."""
        prompt = next((m.content for m in reversed(messages) if m.role == "user"), "")
        excerpt = " ".join(prompt.split()[:40])
        text = (
            "This is placeholder content generated without a language model.\n\n"
            f"{excerpt}"
        )
        return Completion(text=text, finish_reason="stop")


class OpenAIChatProvider:
    """OpenAI-backed chat-completion provider."""

    def __init__(self, api_key: str, model: str = "gpt-4", client: AsyncOpenAI | None = None):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (read from environment)
            model: Model name to use
            client: Preconfigured client (tests inject a mock)
        """
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion:
        """Call the chat-completions API and normalize the response."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [m.model_dump() for m in messages],
        }
        if supports_sampling_params(self.model):
            if max_tokens is not None:
                payload["max_tokens"] = max_tokens
            if temperature is not None:
                payload["temperature"] = temperature

        try:
            response = await self.client.chat.completions.create(**payload)
        except BadRequestError as e:
            if e.code == "context_length_exceeded" or looks_like_context_error(str(e)):
                logger.warning(f"OpenAI rejected oversized prompt: {e}")
                raise ContextLengthExceededError(str(e)) from e
            logger.error(f"OpenAI API call rejected: {e}")
            raise ProviderFailureError(f"OpenAI request rejected: {e}") from e
        except OpenAIError as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise ProviderFailureError(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise ProviderFailureError("OpenAI returned no choices")

        choice = response.choices[0]
        return Completion(
            text=choice.message.content or "",
            finish_reason=choice.finish_reason,
            refusal=getattr(choice.message, "refusal", None),
        )


def get_llm_provider(settings: Settings) -> ChatProvider:
    """Factory function to get appropriate provider based on config.

    Returns:
        OpenAIChatProvider if API key is configured, DeterministicStubProvider otherwise
    """
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        logger.info(f"Using OpenAI provider with model {settings.openai_model_name}")
        return OpenAIChatProvider(
            api_key=api_key.get_secret_value(),
            model=settings.openai_model_name,
        )
    else:
        logger.warning("No OpenAI API key configured, using deterministic stub provider")
        return DeterministicStubProvider()
