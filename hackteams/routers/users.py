import uuid
from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlmodel import Session

from ..config import SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT
from ..database import get_session
from ..dependencies import get_storage_client, require_user
from ..models.user import User
from ..schemas import (
    ApiResponse,
    UpdateProfileCommand,
    UpdateRoleCommand,
    UserProfileView,
    UserRoleView,
    UserSearchView,
    envelope,
)
from ..services import profiles as profile_service
from ..storage import StorageClient

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile")
async def get_user_profile_by_username(
    user_name: Optional[str] = Query(None, alias="userName"),
    db: Session = Depends(get_session)
) -> ApiResponse:
    user = profile_service.get_user_profile_by_username(db, user_name)
    return envelope(UserProfileView.model_validate(user), "User profile retrieved successfully")


@router.get("/profile/{user_id}")
async def get_user_profile(
    user_id: uuid.UUID,
    db: Session = Depends(get_session)
) -> ApiResponse:
    user = profile_service.get_user_profile(db, user_id)
    return envelope(UserProfileView.model_validate(user), "User profile retrieved successfully")


@router.put("/profile")
async def update_user_profile(
    command: UpdateProfileCommand,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    user = profile_service.update_user_profile(
        db,
        current_user.id,
        first_name=command.first_name,
        last_name=command.last_name,
        user_name=command.user_name,
        bio=command.bio,
        location=command.location,
        skills=command.skills,
        interests=command.interests,
        social_links=command.social_links
    )
    return envelope({"user": UserProfileView.model_validate(user)}, "Profile updated successfully")


@router.post("/profile/avatar")
async def upload_profile_image(
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_user),
    storage: StorageClient = Depends(get_storage_client),
    db: Session = Depends(get_session)
) -> ApiResponse:
    data = await file.read() if file else b""
    content_type = file.content_type if file else None
    url = profile_service.upload_profile_image(
        db,
        storage,
        current_user.id,
        data,
        content_type or "application/octet-stream"
    )
    return envelope({"avatarUrl": url}, "Profile image updated")


@router.put("/role")
async def update_user_role(
    command: UpdateRoleCommand,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    user = profile_service.update_user_role(db, current_user.id, command.role)
    return envelope(UserRoleView.model_validate(user), "User role updated successfully")


@router.get("/search")
async def search_users(
    q: Optional[str] = None,
    limit: int = Query(SEARCH_DEFAULT_LIMIT, ge=1, le=SEARCH_MAX_LIMIT),
    db: Session = Depends(get_session)
) -> ApiResponse:
    """Search users by name, username, or email."""
    users = profile_service.search_users(db, q, limit)
    return envelope(
        [UserSearchView.model_validate(user) for user in users],
        "Users found successfully"
    )
