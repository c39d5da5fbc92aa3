"""
Pytest configuration and fixtures for ComplyGrid backend tests.

Settings are read from the environment when complygrid modules are first
imported, so the test environment is configured before any of them load.
Integration tests run against an in-memory SQLite database.
"""

import os

os.environ.setdefault("TESTING", "true")
os.environ.setdefault("COMPLYGRID_SECRET_KEY", "test-secret-key-for-complygrid-unit-tests-0123456789")  # pragma: allowlist secret
os.environ.setdefault("COMPLYGRID_DATABASE_URL", "sqlite://")

from typing import Any, Dict, Generator, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from complygrid.auth import jwt_manager  # noqa: E402
from complygrid.database import Base, Organization, SessionLocal, engine, get_db  # noqa: E402


class InMemoryGapAnalysisCache:
    """Dict-backed stand-in for the Redis gap analysis cache"""

    def __init__(self):
        self.enabled = True
        self.store: Dict[str, dict] = {}

    async def get(self, key: str) -> Optional[dict]:
        return self.store.get(key)

    async def set(self, key: str, value: dict, ttl: Optional[int] = None) -> bool:
        self.store[key] = value
        return True

    async def invalidate_organization(self, organization_id: str) -> int:
        keys = [k for k in self.store if f":{organization_id}:" in k]
        for key in keys:
            del self.store[key]
        return len(keys)

    def is_available(self) -> bool:
        return True


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh schema per test on the shared in-memory database"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def organization(db_session: Session) -> Organization:
    org = Organization(name="Acme Corp")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture
def other_organization(db_session: Session) -> Organization:
    org = Organization(name="Other Corp")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture
def gap_cache() -> InMemoryGapAnalysisCache:
    return InMemoryGapAnalysisCache()


@pytest.fixture
def client(db_session: Session, gap_cache: InMemoryGapAnalysisCache) -> Generator[TestClient, None, None]:
    """
    FastAPI test client bound to the test session and in-memory cache.

    The lifespan hook is not run; tables come from ``db_session``.
    """
    from complygrid.main import app
    from complygrid.routes import gap_analysis as gap_analysis_routes

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    previous_cache = gap_analysis_routes._cache
    gap_analysis_routes._cache = gap_cache
    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()
    gap_analysis_routes._cache = previous_cache


def make_token(organization_id: str, role: str = "ADMIN", user_id: str = "user-1") -> str:
    payload: Dict[str, Any] = {
        "sub": user_id,
        "email": f"{user_id}@example.com",
        "name": "Test User",
        "role": role,
        "organization_id": organization_id,
    }
    return jwt_manager.create_access_token(payload)


@pytest.fixture
def auth_headers(organization: Organization):
    """Build Authorization headers for the default organization"""

    def _headers(role: str = "ADMIN", organization_id: Optional[str] = None) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(organization_id or organization.id, role)}"}

    return _headers
