import uuid
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from hackteams.auth import create_session
from hackteams.database import get_session
from hackteams.dependencies import get_storage_client
from hackteams.models import User
from hackteams.services.auth import register_user
from hackteams.storage import InMemoryStorageClient

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="storage")
def storage_fixture():
    return InMemoryStorageClient()


@pytest.fixture(name="client")
def client_fixture(session: Session, storage: InMemoryStorageClient):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_storage_client] = lambda: storage
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    """Factory for registered users."""
    def make_user(full_name: str = "Test User", user_name: str = None, email: str = None) -> User:
        email = email or f"{uuid.uuid4().hex[:8]}@example.com"
        return register_user(
            session,
            email=email,
            full_name=full_name,
            password="password123",
            user_name=user_name
        )
    return make_user


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(session: Session):
    """Bearer headers for a user, backed by a real session token."""
    def auth_headers(user: User) -> dict:
        user_session = create_session(session, user.id)
        return {"Authorization": f"Bearer {user_session.session_token}"}
    return auth_headers


@pytest.fixture(name="hackathon_id")
def hackathon_id_fixture():
    return uuid.uuid4()
