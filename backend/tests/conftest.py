"""Shared test fixtures for backend tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from stillwaters.api.chat import get_provider
from stillwaters.client.session import ChatSession
from stillwaters.core.exceptions import ProxyUnavailableError, UpstreamCallError
from stillwaters.schemas.chat import ChatAnswer, Interpretation, Scripture
from stillwaters.services.conversation_store import ConversationRepository
from stillwaters.services.llm.base import ResponseProvider
from stillwaters.services.llm.mock import MockProvider

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def psalm_answer(with_scripture: bool = True) -> ChatAnswer:
    scriptures = []
    if with_scripture:
        scriptures.append(
            Scripture(reference="Psalm 23:1", text="The Lord is my shepherd...", translation="NIV")
        )
    return ChatAnswer(
        interpretations=[Interpretation(view="This reflects God's provision...", scriptures=scriptures)]
    )


class StubProvider(ResponseProvider):
    """Answers every question with a fixed answer and counts calls."""

    name = "stub"

    def __init__(self, answer: ChatAnswer | None = None):
        self._answer = answer or psalm_answer()
        self.calls: list[str] = []

    async def answer(self, question: str) -> ChatAnswer:
        self.calls.append(question)
        return self._answer


class FailingProvider(ResponseProvider):
    name = "failing"

    def __init__(self, error: Exception | None = None):
        self.error = error or UpstreamCallError("upstream down")

    async def answer(self, question: str) -> ChatAnswer:
        raise self.error


class FakeProxy:
    """Stands in for ProxyClient in session tests."""

    def __init__(self, answer: ChatAnswer | None = None, error: Exception | None = None):
        self.answer = answer or psalm_answer()
        self.error = error
        self.questions: list[str] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    def hold(self) -> asyncio.Event:
        """Make ask() wait until the returned event is set."""
        self.gate = asyncio.Event()
        return self.gate

    async def ask(self, question: str) -> ChatAnswer:
        self.questions.append(question)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.answer

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import stillwaters.models  # noqa: F401 - register models
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def repository():
    return ConversationRepository(test_engine)


@pytest.fixture
def clock():
    """A clock that moves one second forward on every reading."""
    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    ticks = iter(range(10_000))
    return lambda: start + timedelta(seconds=next(ticks))


@pytest.fixture
def proxy():
    return FakeProxy()


@pytest.fixture
def session(repository, proxy, clock):
    return ChatSession(user_id="user-1", repository=repository, proxy=proxy, clock=clock)


@pytest.fixture
def offline_proxy():
    return FakeProxy(error=ProxyUnavailableError("connection refused"))


@pytest.fixture
def client():
    """FastAPI TestClient serving instant mock answers."""
    with patch("stillwaters.main.get_response_provider", return_value=MockProvider(delay_seconds=0)):
        from stillwaters.main import app

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()


@pytest.fixture
def lenient_client():
    """Like `client`, but server errors come back as responses instead of being re-raised."""
    with patch("stillwaters.main.get_response_provider", return_value=MockProvider(delay_seconds=0)):
        from stillwaters.main import app

        with TestClient(app, raise_server_exceptions=False) as c:
            yield c

        app.dependency_overrides.clear()


@pytest.fixture
def stub_provider(client):
    """Swap the provider behind /api/chat for a call-counting stub."""
    from stillwaters.main import app

    provider = StubProvider()
    app.dependency_overrides[get_provider] = lambda: provider
    return provider
