"""Shared pytest fixtures for threadchat tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from threadchat.auth.router import get_identity_provider
from threadchat.conversations.router import get_conversation_service
from threadchat.conversations.service import ConversationService
from threadchat.db.connection import Database
from threadchat.generation.service import CompletionService
from threadchat.main import app
from threadchat.messages.router import get_completion_service, get_message_service
from threadchat.messages.service import MessageService
from threadchat.providers.registry import clear_providers
from tests.fixtures import ALICE, FakeIdentityProvider, auth_headers


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def conversation_service(db):
    return ConversationService(db)


@pytest.fixture
async def message_service(db, conversation_service):
    return MessageService(db, conversation_service)


@pytest.fixture
async def completion_service(message_service):
    return CompletionService(message_service, provider_name="fake", model="fake-model")


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
async def client(identity, conversation_service, message_service, completion_service):
    """Async test client, in-memory DB wired in, authenticated as ALICE by default."""
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_conversation_service] = lambda: conversation_service
    app.dependency_overrides[get_message_service] = lambda: message_service
    app.dependency_overrides[get_completion_service] = lambda: completion_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=auth_headers(ALICE),
    ) as client:
        yield client
    app.dependency_overrides.clear()
    clear_providers()
