from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..auth import create_session, delete_session
from ..database import get_session
from ..dependencies import get_bearer_token, require_user
from ..models.user import User
from ..schemas import (
    ApiResponse,
    AuthTokenView,
    LoginCommand,
    RegisterCommand,
    UserProfileView,
    envelope,
)
from ..services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    command: RegisterCommand,
    db: Session = Depends(get_session)
) -> ApiResponse:
    """Create an account and open a session for it."""
    user = auth_service.register_user(
        db,
        email=command.email,
        full_name=command.full_name,
        password=command.password,
        user_name=command.user_name
    )
    session = create_session(db, user.id)
    token = AuthTokenView(
        token=session.session_token,
        expires_at=session.expires_at,
        user=UserProfileView.model_validate(user)
    )
    return envelope(token, "User registered successfully", status.HTTP_201_CREATED)


@router.post("/login")
async def login(
    command: LoginCommand,
    db: Session = Depends(get_session)
) -> ApiResponse:
    session = auth_service.login(db, command.email, command.password)
    user = db.get(User, session.user_id)
    token = AuthTokenView(
        token=session.session_token,
        expires_at=session.expires_at,
        user=UserProfileView.model_validate(user)
    )
    return envelope(token, "Logged in successfully")


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    delete_session(db, token)
    return envelope(None, "Logged out successfully")
