"""Glue between the document repository and the content orchestrators."""

import logging

from backend.studio.content.generator import ContentGenerator
from backend.studio.content.refiner import ContentRefiner
from backend.studio.documents.repository import DocumentRepository
from backend.studio.errors import InvalidOperationError
from backend.studio.models import (
    Document,
    GeneratedContent,
    GeneratedContentSet,
    Platform,
    RefineContentRequest,
)

logger = logging.getLogger(__name__)


class ContentWorkflow:
    """Document-level generation and refinement.

    Generated content is only written after a complete, successful
    response; a failed generation leaves the stored bundle untouched.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        generator: ContentGenerator,
        refiner: ContentRefiner | None = None,
    ) -> None:
        self.repository = repository
        self.generator = generator
        self.refiner = refiner or ContentRefiner(generator)

    async def _transcript_for(self, document_id: str) -> tuple[Document, str]:
        document = await self.repository.get_document(document_id)
        transcript = await self.repository.combined_transcript(document_id)
        if not transcript.strip():
            raise InvalidOperationError("Document has no transcript to generate content from")
        return document, transcript

    async def generate_for_document(
        self, document_id: str
    ) -> tuple[Document, GeneratedContentSet]:
        """Generate every platform output for a document and store the bundle."""
        document, transcript = await self._transcript_for(document_id)
        content = await self.generator.generate_all_content(
            transcript, document.input_language, document.output_language
        )
        bundle = GeneratedContent(
            blog=content.blog_post,
            linkedin=content.linkedin_post,
            twitter=content.twitter_post,
            podcast=content.podcast_script,
            twitter_thread=content.twitter_thread,
        )
        updated = await self.repository.save_generated_content(document_id, bundle)
        logger.info(f"Generated content for document {document_id}")
        return updated, content

    async def generate_blog_for_document(self, document_id: str) -> tuple[Document, str]:
        """Generate only the blog post and patch the blog slot."""
        document, transcript = await self._transcript_for(document_id)
        blog = await self.generator.generate_content(
            transcript, document.input_language, document.output_language, Platform.blog
        )
        updated = await self.repository.patch_generated_content(document_id, Platform.blog, blog)
        return updated, blog

    async def refine_for_document(
        self,
        document_id: str,
        platform: Platform | str,
        instruction: str,
        *,
        apply: bool = False,
    ) -> str:
        """Refine one platform output of a document.

        Args:
            document_id: Document to refine
            platform: Platform whose output is revised
            instruction: Free-text instruction
            apply: Persist the refined text into the platform slot

        Raises:
            InvalidOperationError: On an unknown platform or blank instruction
        """
        try:
            target = (
                platform if isinstance(platform, Platform) else Platform(platform.lower())
            )
        except ValueError as e:
            raise InvalidOperationError("Invalid platform") from e
        if not instruction.strip():
            raise InvalidOperationError("Refinement instruction must not be empty")

        document, transcript = await self._transcript_for(document_id)
        current = (
            document.generated_content.get_platform(target) if document.generated_content else None
        )
        refined = await self.refiner.refine(
            RefineContentRequest(
                transcript=transcript,
                input_language=document.input_language,
                output_language=document.output_language,
                platform=target,
                instruction=instruction.strip(),
                current_output=current,
            )
        )
        if apply:
            await self.repository.patch_generated_content(document_id, target, refined)
            logger.info(f"Applied refined {target.value} output to document {document_id}")
        return refined
