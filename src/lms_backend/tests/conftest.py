"""
Pytest configuration and fixtures for all tests.
"""

import base64
from typing import Dict, Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lms_backend.api.exceptions import ServiceUnavailableException
from lms_backend.database import get_db
from lms_backend.model import Base, Course, User
from lms_backend.server import app
from lms_backend.services.credentials import hash_password
from lms_backend.services.storage_service import get_storage_service

DEFAULT_PASSWORD = "secret123"


class FakeStorage:
    """In-memory blob store with the StorageService interface"""

    def __init__(self, fail_deletes: bool = False):
        self.objects: Dict[str, bytes] = {}
        self.deleted = []
        self.fail_deletes = fail_deletes

    async def store(self, data: bytes, metadata: Dict[str, str]) -> str:
        locator = f"courses/{metadata.get('course_id')}/{uuid4().hex}-{metadata.get('filename')}"
        self.objects[locator] = data
        return locator

    async def delete(self, locator: str) -> bool:
        if self.fail_deletes:
            raise ServiceUnavailableException("Storage delete error: unreachable")
        self.deleted.append(locator)
        return self.objects.pop(locator, None) is not None

    async def url_for(self, locator: str) -> str:
        return f"http://blobs.test/{locator}"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def client(db, storage) -> Generator[TestClient, None, None]:
    """TestClient bound to the test session and the fake blob store"""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_service] = lambda: storage

    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory creating persisted users"""

    def _make_user(role: str = "student", email: str = None, password: str = DEFAULT_PASSWORD, **kwargs) -> User:
        user = User(
            first_name=kwargs.pop("first_name", role.capitalize()),
            last_name=kwargs.pop("last_name", "Tester"),
            email=email or f"{role}-{uuid4().hex[:8]}@example.com",
            password=hash_password(password),
            role=role,
            **kwargs
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_course(db):
    """Factory creating a course owned by the given instructor"""

    def _make_course(instructor: User, **kwargs) -> Course:
        course = Course(
            name=kwargs.pop("name", "Intro to Testing"),
            description=kwargs.pop("description", "Writing tests that pass"),
            instructor=instructor.full_name,
            instructor_id=instructor.id,
            duration=kwargs.pop("duration", 4),
            enrolled_students=0,
            **kwargs
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _make_course


def basic_auth(user_or_email, password: str = DEFAULT_PASSWORD) -> Dict[str, str]:
    email = user_or_email if isinstance(user_or_email, str) else user_or_email.email
    token = base64.b64encode(f"{email}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def auth():
    return basic_auth
