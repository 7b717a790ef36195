"""
Shared fixtures for the API test suite.

The application runs against an in-memory SQLite database. Every test gets
freshly created tables seeded with two users, each holding one active
session token, and three tasks.
"""

import io
import os

# Must be set before the application modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SMTP_HOST"] = ""

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlmodel import Session, SQLModel

from database import engine, get_session
from main import create_app
from models import AuthToken, Task, User
from utils.jwt import create_jwt
from utils.security import get_password_hash

USER_ONE_PASSWORD = "56what!!"
USER_TWO_PASSWORD = "myhouse099@@"


@pytest.fixture
def session():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    # Not entered as a context manager: the lifespan would dispose the shared engine
    app = create_app()
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_user(session: Session, name: str, email: str, password: str) -> User:
    user = User(name=name, email=email, hashed_password=get_password_hash(password))
    session.add(user)
    session.add(AuthToken(user_id=user.id, token=create_jwt(user.id)))
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def user_one(session) -> User:
    return _create_user(session, "Mike", "mike@example.com", USER_ONE_PASSWORD)


@pytest.fixture
def user_two(session) -> User:
    return _create_user(session, "Jess", "jess@example.com", USER_TWO_PASSWORD)


@pytest.fixture
def tasks(session, user_one, user_two) -> list:
    """First task is incomplete, the others are completed; the last belongs to user_two"""
    seeded = [
        Task(description="First task", completed=False, owner_id=user_one.id),
        Task(description="Second task", completed=True, owner_id=user_one.id),
        Task(description="Third task", completed=True, owner_id=user_two.id),
    ]
    session.add_all(seeded)
    session.commit()
    for task in seeded:
        session.refresh(task)
    return seeded


def auth_header(user: User, index: int = 0) -> dict:
    return {"Authorization": f"Bearer {user.tokens[index].token}"}


@pytest.fixture
def jpeg_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (640, 480), "teal").save(buffer, format="JPEG")
    return buffer.getvalue()
