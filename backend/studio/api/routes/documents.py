"""Document endpoints - list, create, read, edit, delete, status changes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from backend.studio.api.auth import get_current_owner
from backend.studio.api.deps import get_repository
from backend.studio.documents.repository import DocumentRepository
from backend.studio.models import (
    CreateDocument,
    Document,
    DocumentStatus,
    DocumentUpdate,
    DocumentWithSessions,
)

router = APIRouter(prefix="/documents", tags=["documents"])


class StatusChangeRequest(BaseModel):
    """Request body for PUT /documents/{id}/status.

    Plain string: unknown values are rejected by the repository with a 400.
    """

    status: str


@router.get("", response_model=list[Document])
async def list_documents(
    owner_id: Annotated[str, Depends(get_current_owner)],
    repository: Annotated[DocumentRepository, Depends(get_repository)],
    partition: Annotated[DocumentStatus, Query()] = DocumentStatus.draft,
) -> list[Document]:
    """List the current owner's documents in one partition (default: draft)."""
    return await repository.get_documents(owner_id, partition)


@router.post("", response_model=Document, status_code=status.HTTP_201_CREATED)
async def create_document(
    request: CreateDocument,
    owner_id: Annotated[str, Depends(get_current_owner)],
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> Document:
    """Create an empty draft document.

    Returns 409 when the owner already has a document with this title
    (case-insensitive, across both partitions).
    """
    return await repository.create_document(owner_id, request)


@router.get("/{document_id}", response_model=DocumentWithSessions)
async def get_document(
    document_id: str,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> DocumentWithSessions:
    """Get a document with its sessions in ascending order."""
    return await repository.get_document_with_sessions(document_id)


@router.patch("/{document_id}", response_model=Document)
async def update_document(
    document_id: str,
    request: DocumentUpdate,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> Document:
    """Rename a document or change its language pair."""
    return await repository.update_document(document_id, request)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> Response:
    """Delete a document and all of its sessions."""
    await repository.delete_document(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{document_id}/status", response_model=Document)
async def set_document_status(
    document_id: str,
    request: StatusChangeRequest,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> Document:
    """Move a document (with its sessions) to the draft or completed partition.

    Completing requires generated content; returns 400 otherwise.
    """
    return await repository.set_status(document_id, request.status)
