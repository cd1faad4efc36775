import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..auth import (
    authenticate_user,
    create_session,
    generate_verification_code,
    hash_password,
)
from ..errors import ConflictError, UnauthorizedError, ValidationError
from ..models.session import Session as UserSession
from ..models.user import User

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email."""
    statement = select(User).where(User.email == email.strip().lower())
    return db.exec(statement).first()


def register_user(
    db: Session,
    email: str,
    full_name: str,
    password: str,
    user_name: Optional[str] = None
) -> User:
    """Create a new, unverified user."""
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if len(password) > 72:
        raise ValidationError("Password must be 72 characters or less")

    if get_user_by_email(db, email):
        raise ConflictError("Email already exists")

    if user_name:
        existing = db.exec(select(User).where(User.user_name == user_name)).first()
        if existing:
            raise ConflictError("Username already exists")

    code, expires_at = generate_verification_code()
    user = User(
        email=email.strip().lower(),
        full_name=full_name.strip(),
        user_name=user_name or None,
        password_hash=hash_password(password),
        is_verified=False,
        verification_code=code,
        code_expires_at=expires_at
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email or username already exists")
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user


def login(db: Session, email: str, password: str) -> UserSession:
    """Check credentials and open a new session."""
    user = authenticate_user(db, email, password)
    if not user:
        raise UnauthorizedError("Incorrect email or password")
    return create_session(db, user.id)
