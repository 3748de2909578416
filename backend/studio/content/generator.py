"""Content generation orchestrator - per-platform outputs from a transcript.

Blog posts are long-form: the output is not capped, truncated responses
are continued turn by turn, and a prompt that overflows the model's
context window is retried in fixed-size transcript chunks. Every other
platform is a single bounded request.
"""

import asyncio
import logging

from backend.studio.config import Settings
from backend.studio.content.languages import language_name
from backend.studio.content.prompts import (
    CONTINUE_INSTRUCTION,
    PromptTemplates,
    chunk_note,
    render,
)
from backend.studio.content.threads import (
    looks_like_refusal,
    parse_thread_response,
    split_to_tweets,
)
from backend.studio.errors import (
    ContextLengthExceededError,
    ProviderFailureError,
    ProviderRefusedError,
    TruncatedResponseError,
)
from backend.studio.llm.client import ChatProvider
from backend.studio.models import ChatMessage, Completion, GeneratedContentSet, Platform
from backend.studio.utils.metrics import llm_continuations_total, llm_requests_total

logger = logging.getLogger(__name__)

SHORT_FORM_MAX_TOKENS = 4000
THREAD_MAX_TOKENS = 1400
GENERATION_TEMPERATURE = 0.3


class ContentGenerator:
    """Produces platform outputs and tweet threads through a chat provider."""

    def __init__(
        self,
        provider: ChatProvider,
        templates: PromptTemplates | None = None,
        *,
        chunk_chars: int = 8000,
        max_continuation_turns: int = 10,
        strict_truncation: bool = False,
    ) -> None:
        """Initialize generator.

        Args:
            provider: Chat-completion provider
            templates: Prompt templates (defaults to the built-in set)
            chunk_chars: Transcript chunk size for the chunked blog fallback
            max_continuation_turns: Total requests allowed per continued response
            strict_truncation: Raise TruncatedResponseError instead of returning
                the accumulated text when the turn budget runs out mid-output
        """
        self.provider = provider
        self.templates = templates or PromptTemplates()
        self.chunk_chars = chunk_chars
        self.max_continuation_turns = max_continuation_turns
        self.strict_truncation = strict_truncation

    @classmethod
    def from_settings(cls, provider: ChatProvider, settings: Settings) -> "ContentGenerator":
        return cls(
            provider,
            PromptTemplates.from_settings(settings),
            chunk_chars=settings.blog_chunk_chars,
            max_continuation_turns=settings.max_continuation_turns,
        )

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    async def complete(
        self,
        purpose: str,
        messages: list[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion:
        """Single provider call with request metrics."""
        try:
            completion = await self.provider.complete(
                messages, max_tokens=max_tokens, temperature=temperature
            )
        except Exception:
            llm_requests_total.labels(purpose=purpose, outcome="error").inc()
            raise

        if completion.refusal:
            outcome = "refused"
        elif completion.truncated:
            outcome = "truncated"
        else:
            outcome = "ok"
        llm_requests_total.labels(purpose=purpose, outcome=outcome).inc()
        return completion

    def base_messages(
        self,
        template: str,
        transcript: str,
        input_language: str,
        output_language: str,
        extra_note: str | None = None,
    ) -> list[ChatMessage]:
        """System instruction plus the rendered platform prompt."""
        input_name = language_name(input_language)
        output_name = language_name(output_language)
        prompt = render(template, input_name, output_name, transcript)
        if extra_note:
            prompt = f"{prompt}\n\n{extra_note}"
        return [
            ChatMessage(
                role="system",
                content=render(self.templates.system_instruction, input_name, output_name),
            ),
            ChatMessage(role="user", content=prompt),
        ]

    async def _complete_with_continuation(self, purpose: str, messages: list[ChatMessage]) -> str:
        """Request, then keep asking for more while the provider reports truncation.

        The partial output goes back as an assistant turn followed by an
        instruction to continue verbatim. Parts are joined with blank lines;
        seams are not de-duplicated.
        """
        conversation = list(messages)
        parts: list[str] = []
        truncated = False

        for turn in range(self.max_continuation_turns):
            if turn > 0:
                llm_continuations_total.inc()
                logger.info(f"Continuing truncated {purpose} output (turn {turn + 1})")

            completion = await self.complete(
                purpose,
                conversation,
                temperature=GENERATION_TEMPERATURE,
            )
            if completion.refusal:
                raise ProviderRefusedError(completion.refusal)
            if completion.text:
                parts.append(completion.text)

            truncated = completion.truncated
            if not truncated:
                break

            conversation = [
                *conversation,
                ChatMessage(role="assistant", content=completion.text),
                ChatMessage(role="user", content=CONTINUE_INSTRUCTION),
            ]

        text = "\n\n".join(parts).strip()
        if truncated:
            if self.strict_truncation:
                raise TruncatedResponseError(
                    f"Output still truncated after {self.max_continuation_turns} turns", text
                )
            logger.warning(
                f"{purpose} output still truncated after {self.max_continuation_turns} turns, "
                "returning accumulated text"
            )
        return text

    async def _generate_blog_by_chunks(
        self, transcript: str, input_language: str, output_language: str
    ) -> str:
        """Convert each transcript chunk into a blog section and stitch them."""
        chunks = [
            transcript[i : i + self.chunk_chars]
            for i in range(0, len(transcript), self.chunk_chars)
        ]
        total = len(chunks)
        logger.warning(f"Blog prompt exceeded model context, generating in {total} chunks")

        sections: list[str] = []
        for index, chunk in enumerate(chunks, start=1):
            note = chunk_note(index, total, language_name(output_language))
            messages = self.base_messages(
                self.templates.blog, chunk, input_language, output_language, extra_note=note
            )
            section = await self._complete_with_continuation("blog_chunk", messages)
            sections.append(section.strip())
        return "\n\n".join(sections)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate_content(
        self,
        transcript: str,
        input_language: str,
        output_language: str,
        platform: Platform,
    ) -> str:
        """Generate one platform's output.

        Raises:
            ProviderFailureError: "Failed to generate content" on any provider
                failure, refusal or empty response
        """
        platform = Platform(platform)
        messages = self.base_messages(
            self.templates.for_platform(platform), transcript, input_language, output_language
        )

        try:
            if platform is Platform.blog:
                try:
                    text = await self._complete_with_continuation(platform.value, messages)
                except ContextLengthExceededError:
                    text = await self._generate_blog_by_chunks(
                        transcript, input_language, output_language
                    )
            else:
                completion = await self.complete(
                    platform.value,
                    messages,
                    max_tokens=SHORT_FORM_MAX_TOKENS,
                    temperature=GENERATION_TEMPERATURE,
                )
                if completion.refusal:
                    raise ProviderRefusedError(completion.refusal)
                text = completion.text
        except TruncatedResponseError:
            raise
        except Exception as e:
            logger.error(f"{platform.value} generation failed: {e}")
            raise ProviderFailureError("Failed to generate content") from e

        if not text.strip():
            logger.error(f"{platform.value} generation returned empty output")
            raise ProviderFailureError("Failed to generate content")
        return text

    async def generate_twitter_thread(
        self,
        transcript: str,
        input_language: str,
        output_language: str,
        fallback_source: str | None = None,
    ) -> list[str]:
        """Numbered thread from the dedicated prompt, or a deterministic split.

        Never raises for provider problems: an exception, a refusal or an
        unusable response all fall back to splitting ``fallback_source``
        (or the transcript when no fallback source is given).
        """
        source = fallback_source or transcript
        messages = self.base_messages(
            self.templates.thread, transcript, input_language, output_language
        )

        try:
            completion = await self.complete(
                "twitter_thread",
                messages,
                max_tokens=THREAD_MAX_TOKENS,
                temperature=GENERATION_TEMPERATURE,
            )
        except Exception as e:
            logger.warning(f"Thread generation failed, splitting fallback source: {e}")
            return split_to_tweets(source)

        text = completion.text
        if completion.refusal or not text.strip() or looks_like_refusal(text):
            logger.warning("Thread response empty or refused, splitting fallback source")
            return split_to_tweets(source)

        tweets = parse_thread_response(text)
        return tweets if tweets else split_to_tweets(source)

    async def generate_all_content(
        self, transcript: str, input_language: str, output_language: str
    ) -> GeneratedContentSet:
        """Blog first, then the short platforms in parallel, then the thread.

        The blog doubles as the fallback source for thread splitting.
        """
        blog = await self.generate_content(transcript, input_language, output_language, Platform.blog)
        linkedin, twitter, podcast = await asyncio.gather(
            self.generate_content(transcript, input_language, output_language, Platform.linkedin),
            self.generate_content(transcript, input_language, output_language, Platform.twitter),
            self.generate_content(transcript, input_language, output_language, Platform.podcast),
        )
        thread = await self.generate_twitter_thread(
            transcript, input_language, output_language, fallback_source=blog
        )
        return GeneratedContentSet(
            blog_post=blog,
            linkedin_post=linkedin,
            twitter_post=twitter,
            podcast_script=podcast,
            twitter_thread=thread or None,
        )
