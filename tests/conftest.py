"""
Pytest fixtures: services over an in-memory backend, and an API client
wired to a fresh app per test.
"""

import asyncio
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from omnipost.api.deps import get_ai_client
from omnipost.config import Settings
from omnipost.database import MemoryBackend
from omnipost.main import create_application
from omnipost.services.ai_service import AIEnhancementClient
from omnipost.services.auth_service import AuthService
from omnipost.services.local_store import LocalStore
from omnipost.services.post_service import PostService


def run(coro):
    return asyncio.run(coro)


class Clock:
    """Deterministic millisecond clock; each call moves forward by step."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


class FakeCompletions:
    """Stands in for groq.AsyncGroq().chat.completions."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_groq(*replies):
    completions = FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


@pytest.fixture
def store():
    return LocalStore(MemoryBackend())


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def auth_service(store, clock):
    return AuthService(store, clock=clock)


@pytest.fixture
def post_service(store, clock):
    return PostService(store, clock=clock)


@pytest.fixture
def settings():
    return Settings(storage_backend="memory", groq_api_key=None, password_scheme="plain")


@pytest.fixture
def app(settings):
    return create_application(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def use_ai(app):
    """Swap the app's AI client for one backed by canned replies."""

    def _use(*replies):
        fake = fake_groq(*replies)
        ai = AIEnhancementClient(client=fake)
        app.dependency_overrides[get_ai_client] = lambda: ai
        return fake.chat.completions

    yield _use
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in(client):
    r = client.post(
        "/api/auth/register",
        json={"name": "A", "handle": "a", "email": "a@x.com", "password": "p"},
    )
    assert r.status_code == 201, r.text
    return r.json()["user"]
