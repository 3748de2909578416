"""Demo user endpoints - list, register, read, update preferences."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from backend.studio.api.deps import get_repository
from backend.studio.documents.repository import DocumentRepository
from backend.studio.models import CamelModel, CreateUser, PreferencesUpdate, User

router = APIRouter(prefix="/users", tags=["users"])


class UserPatchRequest(CamelModel):
    """Request body for PATCH /users/{id}."""

    preferences: PreferencesUpdate


@router.get("", response_model=list[User])
async def list_users(
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> list[User]:
    return await repository.list_users()


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUser,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> User:
    """Register a user; the id is the next free number."""
    return await repository.create_user(request)


@router.get("/{user_id}", response_model=User)
async def get_user(
    user_id: str,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> User:
    return await repository.get_user(user_id)


@router.patch("/{user_id}", response_model=User)
async def update_preferences(
    user_id: str,
    request: UserPatchRequest,
    repository: Annotated[DocumentRepository, Depends(get_repository)],
) -> User:
    """Merge preference changes; documents created afterwards use the new defaults."""
    return await repository.update_preferences(user_id, request.preferences)
