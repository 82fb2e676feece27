"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown (in-memory SQLite)
- FastAPI test client with DB and storage overrides
- Users, tokens and sample payloads
"""

import os
import tempfile

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="we3vision-uploads-"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from we3vision.core.database import Base, get_db
from we3vision.core.security import create_access_token, get_password_hash
from we3vision.core.storage import LocalStorage, get_storage
from we3vision.models.user import User, UserRole
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # ON DELETE SET NULL / CASCADE only apply with foreign keys enabled
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "TestPass123!"


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(tmp_path):
    """Local storage rooted in a per-test directory."""
    return LocalStorage(str(tmp_path / "uploads"))


@pytest.fixture
def client(db_session, storage):
    """
    FastAPI test client with overridden database and storage dependencies.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory creating users directly in the database."""
    counter = {"n": 0}

    def _make_user(
        email=None,
        name="Test User",
        password=DEFAULT_PASSWORD,
        role=UserRole.USER,
        is_active=True,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            name=name,
            hashed_password=get_password_hash(password),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def token_for(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role.value})


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def regular_user(make_user):
    return make_user(email="reader@example.com", name="Regular Reader")


@pytest.fixture
def admin_user(make_user):
    return make_user(email="admin@example.com", name="Site Admin", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(regular_user):
    return headers_for(regular_user)


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def sample_blog_data():
    """Sample blog data for testing"""
    return {
        "title": "Building Immersive Worlds in the Metaverse",
        "content": (
            "Virtual worlds are moving from novelty to everyday tooling. In this post we "
            "walk through the rendering, networking and design choices behind our latest build."
        ),
        "excerpt": "How we built our latest immersive experience.",
        "category": "Metaverse",
        "tags": ["metaverse", "3d"],
        "status": "published",
    }


@pytest.fixture
def sample_job_data():
    """Sample job data for testing"""
    return {
        "title": "Senior Python Developer",
        "shortDescription": "Build and scale the APIs behind our products.",
        "fullDescription": (
            "We are looking for a Senior Python Developer with 5+ years of experience "
            "designing REST APIs, working with PostgreSQL and deploying to AWS."
        ),
        "requirements": ["Python", "FastAPI", "PostgreSQL"],
        "responsibilities": "Design APIs, Review code",
        "benefits": '["Health insurance", "Remote Fridays"]',
        "experience": "5+ years",
        "department": "Engineering",
        "employmentType": "Full-time",
        "location": "Surat",
        "salary": {"min": 50000, "max": 80000, "currency": "INR", "period": "monthly"},
        "isRemote": False,
        "priority": 1,
        "tags": "python, backend",
    }
