"""Prompt templates for content generation.

Templates are plain strings with ``{inputLang}``, ``{outputLang}`` and
``{originalText}`` placeholders. Substitution is literal replacement, not
``str.format``, so braces inside transcripts are harmless.
"""

from dataclasses import dataclass

from backend.studio.config import Settings
from backend.studio.models import Platform

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a content transformation expert. Your job is to convert text from {inputLang} "
    "into {outputLang} while preserving the EXACT original meaning, context, and intent. "
    "Do not add new information, opinions, or interpretations. Only reformat and restructure "
    "the existing content. If the input and output languages are different, provide an "
    "accurate translation that maintains the original message."
)

DEFAULT_PLATFORM_PROMPTS: dict[Platform, str] = {
    Platform.blog: (
        "Convert the following {inputLang} text into a well-structured blog post in "
        "{outputLang}. Maintain the original meaning and context exactly. Format it with "
        'proper paragraphs, headings, and structure. Original text: "{originalText}"'
    ),
    Platform.linkedin: (
        "Convert the following {inputLang} text into a professional LinkedIn post in "
        "{outputLang}. Keep it engaging and business-focused while preserving the original "
        'meaning exactly. Original text: "{originalText}"'
    ),
    Platform.twitter: (
        "Convert the following {inputLang} text into a Twitter post in {outputLang} "
        "(280 characters max). Make it engaging while preserving the original meaning "
        'exactly. Original text: "{originalText}"'
    ),
    Platform.podcast: (
        "Convert the following {inputLang} text into a podcast script in {outputLang}. "
        "Maintain natural speech flow while preserving the original meaning exactly. Add "
        'appropriate pauses and emphasis markers. Original text: "{originalText}"'
    ),
}

DEFAULT_THREAD_PROMPT = (
    "Convert the following {inputLang} text into a Twitter thread in {outputLang}. "
    "Write one tweet per line, numbered 1., 2., 3. and so on, each under 280 characters. "
    'Preserve the original meaning exactly. Original text: "{originalText}"'
)

CONTINUE_INSTRUCTION = "Continue from where you left off. Do not repeat any text. Continue verbatim."


def render(template: str, input_lang: str, output_lang: str, original_text: str = "") -> str:
    """Substitute every placeholder occurrence."""
    return (
        template.replace("{inputLang}", input_lang)
        .replace("{outputLang}", output_lang)
        .replace("{originalText}", original_text)
    )


def chunk_note(index: int, total: int, output_lang: str) -> str:
    """Positional note appended to each chunk prompt in the chunked fallback."""
    return (
        f"Note: This is part {index} of {total} of the original transcript. Produce the "
        f"corresponding section of the blog in {output_lang}. Maintain coherence and do not "
        "repeat earlier sections. Do not add introductions or conclusions specific to this "
        "part; those will emerge from the full concatenation."
    )


def refinement_instruction(instruction: str, current_output: str | None) -> str:
    """Final user turn of a refinement conversation."""
    parts = [
        f"User instruction: {instruction}",
        "Apply the instruction exactly while preserving the original meaning and facts.",
        "Do not introduce new information. Respect the platform conventions.",
    ]
    if current_output:
        parts.append(f"Here is the current platform output to refine:\n\n{current_output}")
    return "\n\n".join(parts)


@dataclass(frozen=True)
class PromptTemplates:
    """Resolved templates, each independently overridable via settings."""

    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    blog: str = DEFAULT_PLATFORM_PROMPTS[Platform.blog]
    linkedin: str = DEFAULT_PLATFORM_PROMPTS[Platform.linkedin]
    twitter: str = DEFAULT_PLATFORM_PROMPTS[Platform.twitter]
    podcast: str = DEFAULT_PLATFORM_PROMPTS[Platform.podcast]
    thread: str = DEFAULT_THREAD_PROMPT

    def for_platform(self, platform: Platform) -> str:
        template: str = getattr(self, platform.value)
        return template

    @classmethod
    def from_settings(cls, settings: Settings) -> "PromptTemplates":
        return cls(
            system_instruction=settings.openai_system_instruction or DEFAULT_SYSTEM_INSTRUCTION,
            blog=settings.openai_blog_prompt or DEFAULT_PLATFORM_PROMPTS[Platform.blog],
            linkedin=settings.openai_linkedin_prompt or DEFAULT_PLATFORM_PROMPTS[Platform.linkedin],
            twitter=settings.openai_twitter_prompt or DEFAULT_PLATFORM_PROMPTS[Platform.twitter],
            podcast=settings.openai_podcast_prompt or DEFAULT_PLATFORM_PROMPTS[Platform.podcast],
            thread=settings.openai_twitter_with_thread_prompt or DEFAULT_THREAD_PROMPT,
        )
