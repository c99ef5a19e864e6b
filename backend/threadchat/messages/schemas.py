"""Request and response schemas for message endpoints."""

from pydantic import BaseModel, Field

from threadchat.models import Role

# -- Requests --


class CreateMessageRequest(BaseModel):
    conversation_id: str = Field(min_length=1)
    parent_id: str | None = None
    role: Role
    content: str = Field(min_length=1)


# -- Responses --


class MessageResponse(BaseModel):
    message_id: str
    conversation_id: str
    parent_id: str | None = None
    thread_root_id: str
    depth: int
    role: str
    content: str
    author_id: str | None = None
    metadata: dict | None = None
    created_at: str


class MessageListResponse(BaseModel):
    items: list[MessageResponse]


class SubtreeResponse(BaseModel):
    """A message and everything below it. Descendant order is not part of the contract."""

    root: MessageResponse
    descendants: list[MessageResponse]


class ContextEntry(BaseModel):
    message_id: str
    role: str
    content: str
    created_at: str


class ContextResponse(BaseModel):
    mode: str
    messages: list[ContextEntry]


class TimelineEntry(BaseModel):
    root: MessageResponse
    reply: MessageResponse | None = None
    reply_count: int = 0
    tail_id: str


class TimelineResponse(BaseModel):
    entries: list[TimelineEntry]
