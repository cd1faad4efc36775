import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, select

from hackteams import database
from hackteams.database import build_engine
from hackteams.errors import NotFoundError, install_error_handlers
from hackteams.models import User


def make_app():
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/missing")
    def missing():
        raise NotFoundError("Team not found")

    @app.get("/database")
    def database_down():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    @app.get("/crash")
    def crash():
        raise RuntimeError("unexpected")

    return app


@pytest.fixture(name="error_client")
def error_client_fixture():
    return TestClient(make_app(), raise_server_exceptions=False)


def test_api_error_envelope(error_client):
    response = error_client.get("/missing")

    assert response.status_code == 404
    assert response.json() == {
        "statusCode": 404,
        "message": "Team not found",
        "errors": [],
        "success": False
    }


def test_database_error_is_a_500_envelope(error_client):
    response = error_client.get("/database")

    assert response.status_code == 500
    body = response.json()
    assert body["statusCode"] == 500
    assert body["success"] is False
    assert "database is locked" not in body["message"]


def test_unexpected_error_is_a_500_envelope(error_client, caplog):
    response = error_client.get("/crash")

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    body = response.json()
    assert body["statusCode"] == 500
    assert body["success"] is False
    assert "unexpected" not in body["message"]
    assert "Unhandled error on GET /crash" in caplog.text


def test_get_session_rolls_back_when_the_request_fails(tmp_path, monkeypatch):
    engine = build_engine(f"sqlite:///{tmp_path / 'rollback.db'}")
    SQLModel.metadata.create_all(engine)
    monkeypatch.setattr(database, "engine", engine)

    sessions = database.get_session()
    db = next(sessions)
    rollbacks = []
    rollback = db.rollback

    def record_rollback():
        rollbacks.append(True)
        rollback()

    db.rollback = record_rollback
    db.add(User(email="ada@example.com", full_name="Ada Lovelace", password_hash="x"))
    db.flush()

    with pytest.raises(RuntimeError):
        sessions.throw(RuntimeError("handler failed"))

    assert rollbacks == [True]
    with Session(engine) as check:
        assert check.exec(select(User)).first() is None
    engine.dispose()
