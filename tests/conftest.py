"""
Shared fixtures: in-memory SQLite database, a scripted LLM provider and an
authenticated recruiter.
"""
import json
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from talentdesk.main import app
from talentdesk.db.base import Base
from talentdesk.db.session import get_db
from talentdesk.db.models.candidate import Candidate
from talentdesk.db.models.job import JobProfile
from talentdesk.db.models.user import User
from talentdesk.core.rate_limit import reset_rate_limits
from talentdesk.core.security import hash_password, create_access_token
from talentdesk.llm.dependency import get_llm_provider
from talentdesk.llm.provider import LLMProvider, LLMResponse
from talentdesk.services.resume_parser import encode_resume


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


# Override the database dependency
app.dependency_overrides[get_db] = override_get_db

# Works for every interview-loop call: answer scoring reads "score",
# question generation reads "question"
DEFAULT_REPLY = json.dumps({
    "score": 8,
    "feedback": "Clear and specific answer.",
    "strengths": ["Concrete example"],
    "improvements": [],
    "is_good_answer": True,
    "question": "How do you approach debugging a production incident?",
})


class FakeProvider(LLMProvider):
    """Provider that replays queued replies and records every call."""

    def __init__(self, default: str = DEFAULT_REPLY):
        self.default = default
        self.replies = []
        self.calls = []
        self.uploaded = []
        self.deleted = []
        self.fail_upload = False

    def queue(self, *replies):
        for reply in replies:
            self.replies.append(reply if isinstance(reply, str) else json.dumps(reply))

    def chat(self, messages, model, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append({"messages": messages, "model": model, "temperature": temperature, **kwargs})
        content = self.replies.pop(0) if self.replies else self.default
        return LLMResponse(content=content, model=model, tokens_in=10, tokens_out=10)

    def upload_file(self, file_name, data, mime_type="application/pdf"):
        if self.fail_upload:
            raise RuntimeError("upload rejected")
        self.uploaded.append(file_name)
        return f"file-{len(self.uploaded)}"

    def delete_file(self, file_id):
        self.deleted.append(file_id)


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    reset_rate_limits()
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Provide a database session for tests."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    """Fresh client per test so cookies never leak between tests."""
    return TestClient(app)


@pytest.fixture
def safe_client():
    """Client that returns 500 responses instead of re-raising server errors."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def session_factory():
    """Open extra sessions on the test database, closed after the test."""
    sessions = []

    def make():
        session = TestSessionLocal()
        sessions.append(session)
        return session

    yield make
    for session in sessions:
        session.close()


@pytest.fixture
def fake_llm():
    provider = FakeProvider()
    app.dependency_overrides[get_llm_provider] = lambda: provider
    yield provider
    app.dependency_overrides.pop(get_llm_provider, None)


@pytest.fixture
def test_user(db_session):
    """Create a test recruiter."""
    user = User(
        first_name="Test",
        last_name="Recruiter",
        email="recruiter@example.com",
        phone="555-0100",
        password_hash=hash_password("testpass123"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user):
    """Bearer header for the test recruiter."""
    token = create_access_token({"sub": test_user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def candidate(db_session):
    candidate = Candidate(
        first_name="Grace",
        last_name="Hopper",
        email="grace@example.com",
        phone="555-0199",
        resume=encode_resume(b"Grace Hopper\nRear admiral and compiler pioneer.\ngrace@example.com"),
        resume_file_name="grace.txt",
    )
    db_session.add(candidate)
    db_session.commit()
    db_session.refresh(candidate)
    return candidate


@pytest.fixture
def job(db_session):
    job = JobProfile(
        title="Backend Engineer",
        department="Engineering",
        location="Remote",
        type="full-time",
        description="Build and operate Python web services.",
        questions=[
            {"question": "What is a database index?", "expected_answer": "A lookup structure"},
            {"question": "Explain HTTP caching.", "expected_answer": "Cache-Control, ETags"},
        ],
    )
    db_session.add(job)
    db_session.commit()
    db_session.refresh(job)
    return job
