"""
Shared fixtures: an in-memory SQLite database per test, a TestClient wired
to it, and a scripted AI provider.
"""
from datetime import datetime, timedelta
from typing import List, Optional, Union

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from career_advisor.main import app
from career_advisor.db.base import Base
import career_advisor.db.models  # noqa: F401
from career_advisor.db.models.user import User
from career_advisor.db.session import get_db
from career_advisor.core.fallback import reset_store_failure_log
from career_advisor.core.security import hash_password, create_access_token
from career_advisor.llm.dependency import get_llm_provider
from career_advisor.llm.provider import LLMProvider, LLMResponse


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeProvider(LLMProvider):
    """Returns scripted replies in order; an Exception in the script is raised instead."""

    def __init__(self, replies: Union[str, Exception, List[Union[str, Exception]]]):
        self.replies = list(replies) if isinstance(replies, list) else [replies]
        self.calls = []

    def chat(self, messages, model=None, temperature=0.7, max_tokens=None, **kwargs) -> LLMResponse:
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=model or "fake")


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    reset_store_failure_log()
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db():
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Test client with the test database and no AI provider."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_provider] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_provider():
    """Install a FakeProvider for the AI dependency and return it."""
    def install(replies) -> FakeProvider:
        provider = FakeProvider(replies)
        app.dependency_overrides[get_llm_provider] = lambda: provider
        return provider
    return install


@pytest.fixture
def make_user(db):
    """Create a user, optionally on a paid tier."""
    def create(
        email: str = "test@example.com",
        tier: str = "free",
        password: str = "testpass123",
        expires: Optional[datetime] = None,
    ) -> User:
        user = User(
            email=email,
            first_name="Test",
            last_name="User",
            password_hash=hash_password(password),
            subscription_tier=tier,
            subscription_status="active",
            subscription_expires=expires if expires or tier == "free" else datetime.utcnow() + timedelta(days=30),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return create


@pytest.fixture
def test_user(make_user):
    return make_user()


@pytest.fixture
def auth_headers(test_user):
    """Bearer header for test_user."""
    return {"Authorization": f"Bearer {create_access_token({'sub': test_user.id})}"}


@pytest.fixture
def headers_for():
    """Bearer header factory for any user."""
    def build(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}
    return build
