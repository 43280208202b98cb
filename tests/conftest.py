import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VAPI_ASSISTANT_ID"] = "assistant-test"
os.environ["VAPI_PUBLIC_KEY"] = "public-test"
os.environ["VAPI_WEBHOOK_SECRET"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models import InterviewResult, User  # noqa: F401
from backend import app


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: the lifespan would create the on-disk database
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, email="ada@example.com", password="s3cret-pass", full_name="Ada Lovelace"):
    resp = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "full_name": full_name},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture()
def auth_user(client):
    """A registered user and bearer headers for them."""
    tokens = register(client)
    client.cookies.clear()
    return {
        "uid": tokens["uid"],
        "headers": {"Authorization": f"Bearer {tokens['access_token']}"},
    }


def tool_call_payload(arguments, call_id="abc123", name="evaluate_interview"):
    message = {
        "type": "tool-calls",
        "toolCalls": [
            {"id": "tc_1", "type": "function", "function": {"name": name, "arguments": arguments}}
        ],
    }
    if call_id is not None:
        message["call"] = {"id": call_id}
    return {"message": message}
