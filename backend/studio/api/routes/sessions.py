"""Voice session endpoints."""

from enum import Enum
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from backend.studio.api.deps import get_repository
from backend.studio.documents.repository import DocumentRepository
from backend.studio.models import SessionAppend, SessionCreate, SessionUpdate, VoiceSession

router = APIRouter(tags=["sessions"])


class SessionOrder(str, Enum):
    """Listing order: logical flow (asc) or history view (desc)."""

    asc = "asc"
    desc = "desc"


@router.get("/documents/{document_id}/sessions", response_model=list[VoiceSession])
async def list_sessions(
    document_id: str,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
    order: Annotated[SessionOrder, Query()] = SessionOrder.asc,
) -> list[VoiceSession]:
    """List a document's sessions by session number."""
    if order is SessionOrder.desc:
        return await repository.history(document_id)
    return await repository.get_sessions(document_id)


@router.post(
    "/documents/{document_id}/sessions",
    response_model=VoiceSession,
    status_code=status.HTTP_201_CREATED,
)
async def add_session(
    document_id: str,
    request: SessionCreate,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> VoiceSession:
    """Record a new session; the document's aggregates are recomputed."""
    return await repository.add_session(document_id, request)


@router.get("/sessions/{session_id}", response_model=VoiceSession)
async def get_session(
    session_id: str,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> VoiceSession:
    return await repository.get_session(session_id)


@router.patch("/sessions/{session_id}", response_model=VoiceSession)
async def update_session(
    session_id: str,
    request: SessionUpdate,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> VoiceSession:
    """Edit a session's transcript, duration or notes."""
    return await repository.update_session(session_id, request)


@router.post("/sessions/{session_id}/append", response_model=VoiceSession)
async def append_to_session(
    session_id: str,
    request: SessionAppend,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> VoiceSession:
    """Append newly recorded text and duration to a session."""
    return await repository.append_to_session(session_id, request.text, request.duration)


@router.delete("/sessions/{session_id}", response_model=VoiceSession)
async def delete_session(
    session_id: str,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> VoiceSession:
    """Delete a session and return the removed record."""
    return await repository.delete_session(session_id)
