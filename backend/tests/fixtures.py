"""Shared test helpers: principals, fake collaborators, API shortcuts."""

from httpx import AsyncClient

from threadchat.auth.identity import IdentityProvider
from threadchat.models import Principal
from threadchat.providers.base import (
    GenerationRequest,
    GenerationResult,
    LLMProvider,
    ProviderError,
)

ALICE = Principal(user_id="user-alice", email="alice@example.com", name="Alice")
BOB = Principal(user_id="user-bob", email="bob@example.com", name="Bob")
ADMIN = Principal(user_id="user-ops", email="ops@example.com", name="Ops", is_admin=True)

_TOKENS = {f"token-{p.user_id}": p for p in (ALICE, BOB, ADMIN)}


def auth_headers(principal: Principal) -> dict[str, str]:
    return {"Authorization": f"Bearer token-{principal.user_id}"}


class FakeIdentityProvider(IdentityProvider):
    """Resolves the fixed test tokens; everything else is an invalid session."""

    def __init__(self) -> None:
        self.signed_out: list[str] = []

    async def resolve(self, token: str) -> Principal | None:
        return _TOKENS.get(token)

    async def sign_out(self, token: str) -> None:
        self.signed_out.append(token)


class FakeProvider(LLMProvider):
    """Test provider that returns a canned reply and records requests."""

    def __init__(self, content: str = "Fake response", error: ProviderError | None = None) -> None:
        self.content = content
        self.error = error
        self.requests: list[GenerationRequest] = []

    @property
    def name(self) -> str:
        return "fake"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return GenerationResult(content=self.content, model="fake-model")


# -- API-level helpers --


async def create_conversation(client: AsyncClient, title: str | None = None, **kwargs) -> dict:
    """Create a conversation via the API and return the response JSON."""
    resp = await client.post("/api/conversations", json={"title": title}, **kwargs)
    assert resp.status_code == 201
    return resp.json()


async def post_message(
    client: AsyncClient,
    conversation_id: str,
    content: str,
    parent_id: str | None = None,
    role: str = "user",
    **kwargs,
) -> dict:
    """Create a message via the API and return the response JSON."""
    resp = await client.post("/api/messages", json={
        "conversation_id": conversation_id,
        "parent_id": parent_id,
        "role": role,
        "content": content,
    }, **kwargs)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_forest(client: AsyncClient) -> dict:
    """Create a conversation with two threads.

        R1 (user) -> A1 (assistant) -> U2 (user) -> A2 (assistant)
                                    -> U3 (user)
        R2 (user) -> B1 (assistant)

    Returns {"conversation_id": str, "ids": {label: message_id}}.
    """
    conv = await create_conversation(client, title="Forest")
    cid = conv["conversation_id"]
    ids: dict[str, str] = {}
    ids["R1"] = (await post_message(client, cid, "root one"))["message_id"]
    ids["A1"] = (await post_message(client, cid, "answer one", ids["R1"], "assistant"))["message_id"]
    ids["U2"] = (await post_message(client, cid, "follow up", ids["A1"]))["message_id"]
    ids["A2"] = (await post_message(client, cid, "answer two", ids["U2"], "assistant"))["message_id"]
    ids["U3"] = (await post_message(client, cid, "side question", ids["A1"]))["message_id"]
    ids["R2"] = (await post_message(client, cid, "root two"))["message_id"]
    ids["B1"] = (await post_message(client, cid, "answer root two", ids["R2"], "assistant"))["message_id"]
    return {"conversation_id": cid, "ids": ids}
