"""FastAPI routes for conversation CRUD and auto-titling."""

from fastapi import APIRouter, Depends, HTTPException, status

from threadchat.auth.router import get_current_user
from threadchat.conversations.schemas import (
    AutoTitleResponse,
    ConversationListResponse,
    ConversationResponse,
    CreateConversationRequest,
    DeleteConversationResponse,
)
from threadchat.conversations.service import ConversationNotFoundError, ConversationService
from threadchat.models import ErrorKind, Principal

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


def get_conversation_service() -> ConversationService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("ConversationService not initialized")


@router.get("")
async def list_conversations(
    principal: Principal = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationListResponse:
    return ConversationListResponse(items=await service.list_conversations(principal))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    request: CreateConversationRequest | None = None,
    principal: Principal = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    title = request.title if request is not None else None
    return await service.create_conversation(principal, title=title)


@router.get("/{conversation_id}")
async def get_conversation(
    conversation_id: str,
    principal: Principal = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    try:
        return await service.get_conversation(conversation_id, principal)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    principal: Principal = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> DeleteConversationResponse:
    try:
        await service.delete_conversation(conversation_id, principal)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    return DeleteConversationResponse()


@router.post("/{conversation_id}/auto-title")
async def auto_title(
    conversation_id: str,
    principal: Principal = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
) -> AutoTitleResponse:
    try:
        title = await service.auto_title(conversation_id, principal)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=ErrorKind.NOT_FOUND)
    return AutoTitleResponse(title=title)
