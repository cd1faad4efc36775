from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import config
from .auth import get_user_by_session_token
from .database import get_session
from .errors import UnauthorizedError
from .models.user import User
from .storage import InMemoryStorageClient, S3StorageClient, StorageClient

bearer_scheme = HTTPBearer(auto_error=False)

_storage_client: Optional[StorageClient] = None


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    if not credentials:
        return None
    return credentials.credentials


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    db: Session = Depends(get_session)
) -> Optional[User]:
    """Get the current user from the bearer session token."""
    if not token:
        return None
    return get_user_by_session_token(db, token)


async def require_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """Require an authenticated user."""
    if not current_user:
        raise UnauthorizedError("Unauthorized request")
    return current_user


def get_storage_client() -> StorageClient:
    """Return a process-wide storage client; in-memory when no bucket is configured."""
    global _storage_client
    if _storage_client:
        return _storage_client

    if not config.STORAGE_BUCKET:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=config.STORAGE_BUCKET,
            region=config.STORAGE_REGION,
            endpoint=config.STORAGE_ENDPOINT,
            access_key_id=config.STORAGE_ACCESS_KEY_ID,
            secret_access_key=config.STORAGE_SECRET_ACCESS_KEY,
            public_base_url=config.STORAGE_PUBLIC_BASE_URL,
        )
    return _storage_client
