"""Request and response schemas for conversation endpoints."""

from pydantic import BaseModel

# -- Requests --


class CreateConversationRequest(BaseModel):
    title: str | None = None


# -- Responses --


class ConversationResponse(BaseModel):
    conversation_id: str
    title: str | None = None
    created_at: str
    updated_at: str


class ConversationListResponse(BaseModel):
    items: list[ConversationResponse]


class AutoTitleResponse(BaseModel):
    title: str


class DeleteConversationResponse(BaseModel):
    ok: bool = True
