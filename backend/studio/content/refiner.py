"""Refinement orchestrator - revise one platform output by instruction."""

import logging

from backend.studio.content.generator import ContentGenerator
from backend.studio.content.languages import language_name
from backend.studio.content.prompts import refinement_instruction, render
from backend.studio.errors import InvalidOperationError, ProviderFailureError, ProviderRefusedError
from backend.studio.models import ChatMessage, RefineContentRequest

logger = logging.getLogger(__name__)

REFINE_MAX_TOKENS = 4000
REFINE_TEMPERATURE = 0.2


class ContentRefiner:
    """Two-turn refinement: regenerate the base output, then revise it."""

    def __init__(self, generator: ContentGenerator) -> None:
        self.generator = generator

    async def refine(self, request: RefineContentRequest) -> str:
        """Revise a platform output according to a free-text instruction.

        The base output is regenerated first and fed back as the assistant
        turn; the saved output (if any) is attached to the instruction as
        additional grounding. No continuation or chunking is applied to the
        refinement turn.

        Raises:
            InvalidOperationError: If the instruction is blank
            ProviderFailureError: "Failed to refine content" on any provider problem
        """
        instruction = request.instruction.strip()
        if not instruction:
            raise InvalidOperationError("Refinement instruction must not be empty")

        try:
            base = await self.generator.generate_content(
                request.transcript,
                request.input_language,
                request.output_language,
                request.platform,
            )

            input_name = language_name(request.input_language)
            output_name = language_name(request.output_language)
            messages = [
                ChatMessage(
                    role="system",
                    content=render(
                        self.generator.templates.system_instruction, input_name, output_name
                    ),
                ),
                ChatMessage(
                    role="user",
                    content=(
                        f"Original transcript in {input_name} (to be expressed in {output_name})"
                        f":\n\n{request.transcript}"
                    ),
                ),
                ChatMessage(role="assistant", content=base),
                ChatMessage(
                    role="user",
                    content=refinement_instruction(instruction, request.current_output),
                ),
            ]

            completion = await self.generator.complete(
                "refine",
                messages,
                max_tokens=REFINE_MAX_TOKENS,
                temperature=REFINE_TEMPERATURE,
            )
            if completion.refusal:
                raise ProviderRefusedError(completion.refusal)
        except Exception as e:
            logger.error(f"Refinement of {request.platform.value} output failed: {e}")
            raise ProviderFailureError("Failed to refine content") from e

        if not completion.text.strip():
            logger.error(f"Refinement of {request.platform.value} output returned empty text")
            raise ProviderFailureError("Failed to refine content")
        return completion.text
