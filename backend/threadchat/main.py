"""threadchat FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from anthropic import AsyncAnthropic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from supabase import acreate_client

from threadchat.auth.identity import SupabaseIdentityProvider
from threadchat.auth.router import get_identity_provider
from threadchat.auth.router import router as auth_router
from threadchat.config import get_settings
from threadchat.conversations.router import get_conversation_service
from threadchat.conversations.router import router as conversations_router
from threadchat.conversations.service import ConversationService
from threadchat.db.connection import Database
from threadchat.generation.service import CompletionService
from threadchat.messages.router import get_completion_service, get_message_service
from threadchat.messages.router import router as messages_router
from threadchat.messages.service import MessageService
from threadchat.models import ErrorKind
from threadchat.providers.anthropic import AnthropicProvider
from threadchat.providers.openai import OpenAIProvider
from threadchat.providers.registry import clear_providers, find_provider, register_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    settings = get_settings()
    logging.getLogger("threadchat").setLevel(settings.log_level.upper())

    db = await Database.connect(settings.db_path)

    # Providers are registered for whichever API keys are configured
    if settings.openai_api_key:
        register_provider(OpenAIProvider(api_key=settings.openai_api_key))
    if settings.anthropic_api_key:
        register_provider(AnthropicProvider(AsyncAnthropic(api_key=settings.anthropic_api_key)))
    completion_provider = find_provider(settings.completion_provider)
    if completion_provider is None:
        logger.warning(
            "Completion provider %r not configured; replies will be placeholders",
            settings.completion_provider,
        )

    # Identity provider
    if settings.identity_configured:
        supabase = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
        identity = SupabaseIdentityProvider(supabase, settings.admin_email_set)
        app.dependency_overrides[get_identity_provider] = lambda: identity
    else:
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set; all requests will fail")

    conversation_service = ConversationService(
        db, title_provider=completion_provider, title_model=settings.title_model
    )
    app.dependency_overrides[get_conversation_service] = lambda: conversation_service

    message_service = MessageService(db, conversation_service)
    app.dependency_overrides[get_message_service] = lambda: message_service

    completion_service = CompletionService(
        message_service,
        provider_name=settings.completion_provider,
        model=settings.completion_model,
        max_tokens=settings.completion_max_tokens,
    )
    app.dependency_overrides[get_completion_service] = lambda: completion_service

    app.state.db = db
    yield

    clear_providers()
    await db.close()


app = FastAPI(
    title="threadchat",
    description="Threaded chat backend: conversations as message trees with AI replies",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(conversations_router)
app.include_router(messages_router)


# Framework-raised errors (unknown route, wrong method) carry prose details
_STATUS_KINDS = {
    401: ErrorKind.UNAUTHENTICATED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.NOT_FOUND,
}


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, ErrorKind):
        kind = exc.detail
    else:
        kind = _STATUS_KINDS.get(exc.status_code, ErrorKind.INTERNAL_ERROR)
    return JSONResponse({"error": kind}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": ErrorKind.VALIDATION_ERROR}, status_code=400)


@app.exception_handler(Exception)
async def internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": ErrorKind.INTERNAL_ERROR}, status_code=500)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}
