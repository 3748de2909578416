"""Content generation and refinement endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import Field

from backend.studio.api.deps import get_generator, get_repository, get_workflow
from backend.studio.content.generator import ContentGenerator
from backend.studio.content.refiner import ContentRefiner
from backend.studio.documents.repository import DocumentRepository
from backend.studio.errors import InvalidOperationError
from backend.studio.models import (
    CamelModel,
    Document,
    GenerateContentRequest,
    GeneratedContentSet,
    Platform,
    RefineContentRequest,
    RefineContentResponse,
)
from backend.studio.services.workflow import ContentWorkflow

router = APIRouter(tags=["content"])


class GenerateDocumentResponse(CamelModel):
    """Response for POST /documents/{id}/generate."""

    document: Document
    content: GeneratedContentSet


class GenerateBlogResponse(CamelModel):
    """Response for POST /documents/{id}/generate-blog."""

    document: Document
    blog_post: str


class RefineDocumentRequest(CamelModel):
    """Request body for POST /documents/{id}/refine."""

    platform: str
    instruction: str = Field(..., min_length=1)
    apply: bool = False


class ContentEditRequest(CamelModel):
    """Request body for PUT /documents/{id}/content/{platform}."""

    text: str


def _parse_platform(value: str) -> Platform:
    try:
        return Platform(value.lower())
    except ValueError as e:
        raise InvalidOperationError("Invalid platform") from e


@router.post("/generate-content", response_model=GeneratedContentSet)
async def generate_content(
    request: GenerateContentRequest,
    generator: Annotated[ContentGenerator, Depends(get_generator)],
) -> GeneratedContentSet:
    """Generate every platform output for a raw transcript (nothing is stored)."""
    return await generator.generate_all_content(
        request.transcript, request.input_language, request.output_language
    )


@router.post("/refine-content", response_model=RefineContentResponse)
async def refine_content(
    request: RefineContentRequest,
    generator: Annotated[ContentGenerator, Depends(get_generator)],
) -> RefineContentResponse:
    """Refine one platform output of a raw transcript (nothing is stored)."""
    refined = await ContentRefiner(generator).refine(request)
    return RefineContentResponse(refined=refined)


@router.post("/documents/{document_id}/generate", response_model=GenerateDocumentResponse)
async def generate_for_document(
    document_id: str,
    workflow: Annotated[ContentWorkflow, Depends(get_workflow)],
) -> GenerateDocumentResponse:
    """Generate and store all platform outputs from the document's sessions."""
    document, content = await workflow.generate_for_document(document_id)
    return GenerateDocumentResponse(document=document, content=content)


@router.post("/documents/{document_id}/generate-blog", response_model=GenerateBlogResponse)
async def generate_blog_for_document(
    document_id: str,
    workflow: Annotated[ContentWorkflow, Depends(get_workflow)],
) -> GenerateBlogResponse:
    """Generate only the blog post and store it in the blog slot."""
    document, blog = await workflow.generate_blog_for_document(document_id)
    return GenerateBlogResponse(document=document, blog_post=blog)


@router.post("/documents/{document_id}/refine", response_model=RefineContentResponse)
async def refine_for_document(
    document_id: str,
    request: RefineDocumentRequest,
    workflow: Annotated[ContentWorkflow, Depends(get_workflow)],
) -> RefineContentResponse:
    """Refine a stored platform output; persisted only when ``apply`` is set."""
    refined = await workflow.refine_for_document(
        document_id, request.platform, request.instruction, apply=request.apply
    )
    return RefineContentResponse(refined=refined)


@router.put("/documents/{document_id}/content/{platform}", response_model=Document)
async def edit_content(
    document_id: str,
    platform: str,
    request: ContentEditRequest,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> Document:
    """Replace one platform's stored output by hand."""
    return await repository.patch_generated_content(
        document_id, _parse_platform(platform), request.text
    )
