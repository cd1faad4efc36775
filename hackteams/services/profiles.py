import logging
import time
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, col

from .. import config
from ..errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from ..models.user import User, UserRole
from ..storage import StorageClient

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def join_full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part.strip() for part in (first_name, last_name) if part and part.strip())


def split_full_name(full_name: str) -> Tuple[str, str]:
    """Split a stored name on its first space into (first, rest)."""
    first, _, rest = (full_name or "").strip().partition(" ")
    return first, rest.strip()


def update_user_profile(
    db: Session,
    user_id: uuid.UUID,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    user_name: Optional[str] = None,
    bio: Optional[str] = None,
    location: Optional[str] = None,
    skills: Optional[List[str]] = None,
    interests: Optional[List[str]] = None,
    social_links: Optional[Dict[str, str]] = None
) -> User:
    """Partial profile update; fields left as None are not touched."""
    user = _get_user(db, user_id)

    if first_name is not None or last_name is not None:
        current_first, current_last = split_full_name(user.full_name)
        full_name = join_full_name(
            current_first if first_name is None else first_name,
            current_last if last_name is None else last_name
        )
        if not full_name:
            raise ValidationError("Name cannot be empty")
        user.full_name = full_name

    if user_name is not None and user_name != user.user_name:
        taken = db.exec(
            select(User).where(User.user_name == user_name, User.id != user_id)
        ).first()
        if taken:
            raise ConflictError("Username is already taken")
        user.user_name = user_name

    if bio is not None:
        user.bio = bio
    if location is not None:
        user.location = location
    if skills is not None:
        user.skills = list(skills)
    if interests is not None:
        user.interests = list(interests)
    if social_links is not None:
        user.social_links = dict(social_links)

    user.updated_at = datetime.utcnow()
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username is already taken")
    db.refresh(user)

    logger.info("Profile updated for user %s", user_id)
    return user


def upload_profile_image(
    db: Session,
    storage: StorageClient,
    user_id: uuid.UUID,
    data: bytes,
    content_type: str = "application/octet-stream"
) -> str:
    """Store an avatar in object storage and save its URL on the user."""
    if not data:
        raise ValidationError("No file uploaded")
    if len(data) > config.MAX_AVATAR_BYTES:
        raise ValidationError("Profile image is too large")
    if content_type and not content_type.startswith("image/"):
        raise ValidationError("Profile image must be an image file")

    user = _get_user(db, user_id)

    key = f"{config.AVATAR_FOLDER}/user_{user_id}_{int(time.time() * 1000)}"
    try:
        url = storage.upload_bytes(key, data, content_type)
    except Exception as exc:
        logger.exception("Avatar upload failed for user %s", user_id)
        raise UpstreamError("Profile image upload failed") from exc

    user.avatar_url = url
    user.updated_at = datetime.utcnow()
    db.add(user)
    db.commit()

    logger.info("Avatar updated for user %s", user_id)
    return url


def get_user_profile(db: Session, user_id: Optional[uuid.UUID]) -> User:
    if not user_id:
        raise ValidationError("User ID is required")
    return _get_user(db, user_id)


def get_user_profile_by_username(db: Session, user_name: Optional[str]) -> User:
    if not user_name or not user_name.strip():
        raise ValidationError("Username query parameter is required")

    user = db.exec(
        select(User).where(User.user_name == user_name.strip()).limit(1)
    ).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user_role(db: Session, user_id: uuid.UUID, role: UserRole) -> User:
    # TODO: restrict to organizers once an admin approval path exists
    user = _get_user(db, user_id)
    user.role = UserRole(role)
    user.updated_at = datetime.utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Role of user %s set to %s", user_id, user.role.value)
    return user


def search_users(db: Session, query: Optional[str], limit: int = config.SEARCH_DEFAULT_LIMIT) -> List[User]:
    """Case-insensitive substring match on name, username and email, ordered by name."""
    term = (query or "").strip()
    if len(term) < config.SEARCH_MIN_QUERY_LENGTH:
        raise ValidationError(
            f"Search query must be at least {config.SEARCH_MIN_QUERY_LENGTH} characters"
        )
    if limit < 1:
        raise ValidationError("limit must be at least 1")
    limit = min(limit, config.SEARCH_MAX_LIMIT)

    pattern = f"%{_escape_like(term)}%"
    statement = (
        select(User)
        .where(
            or_(
                col(User.full_name).ilike(pattern, escape="\\"),
                col(User.user_name).ilike(pattern, escape="\\"),
                col(User.email).ilike(pattern, escape="\\")
            )
        )
        .order_by(User.full_name)
        .limit(limit)
    )
    return list(db.exec(statement).all())
