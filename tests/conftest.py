import os

# Must be set before blogapi builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from blogapi.crud import crud_user
from blogapi.database import Base, SessionLocal, engine
from blogapi.main import app
from blogapi.models import RoleName, User
from blogapi.services import admin_service
from blogapi.utils import hash_password


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(username, *roles):
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password("secret1"),
        )
        for role in roles or (RoleName.USER,):
            user.roles.append(crud_user.get_or_create_role(db, role))
        crud_user.create_user(db, user)
        db.commit()
        return user
    return _make_user


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, username, email=None, password="secret1"):
    response = client.post("/api/auth/register", json={
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


def grant(user_id, role):
    session = SessionLocal()
    try:
        admin_service.assign_role(session, user_id, role)
    finally:
        session.close()


@pytest.fixture
def alice(client):
    return register(client, "alice", "alice@x.com")


@pytest.fixture
def bob(client):
    return register(client, "bob", "bob@x.com")


@pytest.fixture
def alice_headers(alice):
    return auth_header(alice["token"])


@pytest.fixture
def bob_headers(bob):
    return auth_header(bob["token"])


@pytest.fixture
def admin(client):
    data = register(client, "root", "root@x.com")
    grant(data["user"]["id"], RoleName.ADMIN)
    return data


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin["token"])


@pytest.fixture
def create_post(client):
    def _create_post(headers, title="My First Post", content="Hello from the blog.", **fields):
        response = client.post("/api/posts", json={"title": title, "content": content, **fields},
                               headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create_post
