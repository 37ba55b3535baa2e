import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LLM_GATEWAY_API_KEY", "test-llm-key")
# TestClient connects as "testclient"; treat it as the load balancer
os.environ.setdefault("FORWARDED_ALLOW_IPS", '["testclient"]')

from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db
from main import app
from auth.models import Profile
from chat.ratelimit import RateLimiter
import chat.routes

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

STUDENT_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ID = "22222222-2222-2222-2222-222222222222"
ADMIN_ID = "33333333-3333-3333-3333-333333333333"
TEACHER_ID = "44444444-4444-4444-4444-444444444444"


@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with_client = TestClient(app)
    yield with_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fresh_rate_limiter(monkeypatch):
    limiter = RateLimiter(limit=50, window_seconds=60)
    monkeypatch.setattr(chat.routes, "chat_rate_limiter", limiter)
    return limiter


def make_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token shaped like the ones the auth platform issues."""
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=1))
    claims = {"sub": user_id, "aud": settings.JWT_AUDIENCE, "role": "authenticated", "exp": expire}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user_id: str = STUDENT_ID) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def student_headers():
    return auth_headers(STUDENT_ID)


@pytest.fixture
def other_headers():
    return auth_headers(OTHER_ID)


@pytest.fixture
def admin_headers(db):
    db.add(Profile(user_id=ADMIN_ID, full_name="Admin", role="admin"))
    db.commit()
    return auth_headers(ADMIN_ID)


@pytest.fixture
def teacher_headers(db):
    db.add(Profile(user_id=TEACHER_ID, full_name="Mwalimu", role="teacher"))
    db.commit()
    return auth_headers(TEACHER_ID)
