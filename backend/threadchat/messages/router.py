"""FastAPI routes for messages: creation, listing, tree views, and completion.

Conversation-scoped reads answer 404 for conversations the caller may not
see. Message-scoped reads (tree, context, complete) answer 403 when the
message exists but its conversation belongs to someone else.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from threadchat.auth.router import get_current_user
from threadchat.conversations.service import ConversationNotFoundError
from threadchat.generation.service import CompletionService
from threadchat.messages.schemas import (
    ContextResponse,
    CreateMessageRequest,
    MessageListResponse,
    MessageResponse,
    SubtreeResponse,
    TimelineResponse,
)
from threadchat.messages.service import (
    MessageAccessDeniedError,
    MessageNotFoundError,
    MessageService,
    ParentNotFoundError,
    ThreadRootNotFoundError,
)
from threadchat.models import ErrorKind, Principal, parse_context_mode

router = APIRouter(prefix="/api", tags=["messages"])


def get_message_service() -> MessageService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("MessageService not initialized")


def get_completion_service() -> CompletionService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("CompletionService not initialized")


@router.get("/conversations/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    principal: Principal = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> MessageListResponse:
    try:
        items = await service.list_messages_for(conversation_id, principal)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    return MessageListResponse(items=items)


@router.get("/conversations/{conversation_id}/timeline")
async def get_timeline(
    conversation_id: str,
    principal: Principal = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> TimelineResponse:
    try:
        entries = await service.timeline_for(conversation_id, principal)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    return TimelineResponse(entries=entries)


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def create_message(
    request: CreateMessageRequest,
    principal: Principal = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    try:
        return await service.post_message(request, principal)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    except ParentNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.PARENT_NOT_FOUND)


@router.get("/messages/{message_id}/tree")
async def get_subtree(
    message_id: str,
    principal: Principal = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> SubtreeResponse:
    try:
        return await service.subtree_for(message_id, principal)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    except MessageAccessDeniedError:
        raise HTTPException(status_code=403, detail=ErrorKind.FORBIDDEN)


@router.get("/messages/{message_id}/context")
async def get_context(
    message_id: str,
    mode: str | None = None,
    principal: Principal = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
) -> ContextResponse:
    resolved_mode = parse_context_mode(mode)
    try:
        messages = await service.context_for(message_id, resolved_mode, principal)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    except MessageAccessDeniedError:
        raise HTTPException(status_code=403, detail=ErrorKind.FORBIDDEN)
    except ThreadRootNotFoundError:
        raise HTTPException(status_code=500, detail=ErrorKind.THREAD_ROOT_NOT_FOUND)
    return ContextResponse(mode=resolved_mode, messages=messages)


@router.post("/messages/{message_id}/complete", status_code=status.HTTP_201_CREATED)
async def complete(
    message_id: str,
    mode: str | None = None,
    principal: Principal = Depends(get_current_user),
    service: CompletionService = Depends(get_completion_service),
) -> MessageResponse:
    try:
        return await service.complete(message_id, parse_context_mode(mode), principal)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    except MessageAccessDeniedError:
        raise HTTPException(status_code=403, detail=ErrorKind.FORBIDDEN)
