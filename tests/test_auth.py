from datetime import datetime, timedelta
from sqlmodel import select
from hackteams import config
from hackteams.auth import (
    create_session,
    get_user_by_session_token,
    hash_password,
    verify_password,
)
from hackteams.models import Session as UserSession


def test_password_hashing():
    password = "secure_password_123"
    hashed = hash_password(password)

    assert hashed != password
    assert isinstance(hashed, str)
    assert len(hashed) > 0


def test_password_verification():
    hashed = hash_password("secure_password_123")

    assert verify_password("secure_password_123", hashed) is True
    assert verify_password("wrong_password", hashed) is False


def test_password_long_truncation():
    # bcrypt only looks at the first 72 bytes
    long_password = "a" * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True
    assert verify_password("a" * 72, hashed) is True
    assert verify_password("b" * 72, hashed) is False


def test_expired_session_is_removed(session, make_user):
    user = make_user()
    user_session = create_session(session, user.id)
    user_session.expires_at = datetime.utcnow() - timedelta(minutes=1)
    session.add(user_session)
    session.commit()

    assert get_user_by_session_token(session, user_session.session_token) is None
    remaining = session.exec(
        select(UserSession).where(UserSession.session_token == user_session.session_token)
    ).first()
    assert remaining is None


def test_register_login_and_logout(client):
    response = client.post(
        "/auth/register",
        json={
            "email": "Ada@Example.com",
            "fullName": "Ada Lovelace",
            "userName": "ada",
            "password": "password123"
        }
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["fullName"] == "Ada Lovelace"
    assert body["data"]["token"]

    response = client.post(
        "/auth/login",
        json={"email": "ada@example.com", "password": "password123"}
    )
    assert response.status_code == 200
    token = response.json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    response = client.post("/auth/logout", headers=headers)
    assert response.status_code == 200

    # Token no longer valid
    response = client.post("/auth/logout", headers=headers)
    assert response.status_code == 401


def test_register_duplicate_email(client, make_user):
    make_user(email="taken@example.com")

    response = client.post(
        "/auth/register",
        json={"email": "taken@example.com", "fullName": "Someone", "password": "password123"}
    )
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_register_short_password(client):
    response = client.post(
        "/auth/register",
        json={"email": "short@example.com", "fullName": "Short", "password": "123"}
    )
    assert response.status_code == 400
    body = response.json()
    assert body["statusCode"] == 400
    assert any(err["field"] == "password" for err in body["errors"])


def test_login_wrong_password(client, make_user):
    make_user(email="user@example.com")

    response = client.post(
        "/auth/login",
        json={"email": "user@example.com", "password": "nope-nope"}
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Incorrect email or password"


def test_protected_route_requires_token(client):
    response = client.get("/teams/user/my-teams")
    assert response.status_code == 401
    assert response.json() == {
        "statusCode": 401,
        "message": "Unauthorized request",
        "errors": [],
        "success": False
    }


def test_session_tokens_are_opaque_without_a_signing_key(session, make_user):
    user_session = create_session(session, make_user().id)

    assert not hasattr(config, "SECRET_KEY")
    assert get_user_by_session_token(session, user_session.session_token) is not None
