"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema recreated for every test
- One active user per role (with a realistic managed_by chain)
- HTTPX AsyncClients authenticated through the session cookie
- Two independent sessions over a file-backed database (race tests)
"""
import os
import uuid
from typing import AsyncGenerator, Callable, Generator

# Configure before importing the app (settings are read at import time)
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from portal.core.deps import COOKIE_NAME, get_db
from portal.core.security import create_session_token, hash_password
from portal.db.base import Base
from portal.db.enums import Role
from portal.db.models import User
from portal.db.session import SessionLocal, engine
from portal.main import app

TEST_PASSWORD = "Password1"
CSRF_HEADERS = {"X-Requested-With": "XMLHttpRequest"}
INTERNAL_HEADERS = {"X-Internal-Secret": "test-internal-secret"}


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema and session per test."""
    Base.metadata.create_all(engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    """Factory for active, auto-approved users."""

    def _make_user(role: Role, managed_by: User | None = None, **overrides) -> User:
        suffix = uuid.uuid4().hex[:8]
        fields = {
            "username": f"{role.value}-{suffix}",
            "email": f"{role.value}-{suffix}@test.com",
            "password_hash": hash_password(TEST_PASSWORD),
            "role": role.value,
            "first_name": role.value.replace("_", " ").title(),
            "last_name": suffix,
            "managed_by_id": managed_by.id if managed_by else None,
            "is_active": True,
            "is_approved": True,
            "pending_approval": False,
        }
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def super_admin(make_user) -> User:
    return make_user(Role.SUPER_ADMIN)


@pytest.fixture
def admin(make_user, super_admin) -> User:
    return make_user(Role.ADMIN, managed_by=super_admin)


@pytest.fixture
def territorial_manager(make_user, admin) -> User:
    return make_user(Role.TERRITORIAL_MANAGER, managed_by=admin)


@pytest.fixture
def job_desk(make_user, territorial_manager) -> User:
    return make_user(Role.JOB_DESK, managed_by=territorial_manager)


@pytest.fixture
def reporter(make_user, job_desk) -> User:
    return make_user(Role.REPORTER, managed_by=job_desk)


# =============================================================================
# Client Fixtures
# =============================================================================

def session_cookie(user: User) -> dict[str, str]:
    token = create_session_token(
        user_id=user.id,
        role=user.role,
        token_version=user.token_version,
    )
    return {COOKIE_NAME: token}


@pytest.fixture(scope="function")
async def make_client(db: Session) -> AsyncGenerator[Callable[..., AsyncClient], None]:
    """
    Factory for AsyncClients sharing the test session.

    ``make_client(user)`` returns a client with that user's session cookie and
    the CSRF header; ``make_client()`` an anonymous one.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    clients: list[AsyncClient] = []

    def _make_client(user: User | None = None, csrf: bool = True) -> AsyncClient:
        client = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=session_cookie(user) if user else None,
            headers=CSRF_HEADERS if csrf else None,
        )
        clients.append(client)
        return client

    yield _make_client

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(make_client) -> AsyncClient:
    """Unauthenticated client (CSRF header set)."""
    return make_client()


# =============================================================================
# Concurrency Fixtures
# =============================================================================

@pytest.fixture
def file_sessions(tmp_path):
    """Two independent sessions over a file-backed SQLite database."""
    file_engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")

    @event.listens_for(file_engine, "connect")
    def _fk(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(file_engine)
    factory = sessionmaker(bind=file_engine, autoflush=False)
    first, second = factory(), factory()
    yield first, second
    first.close()
    second.close()
    file_engine.dispose()
