"""Completion service: context assembly, LLM call, and reply persistence.

Upstream failures never fail the request. A broken or missing completion API
degrades to a placeholder reply, with the diagnostic stored as metadata on
the reply itself.
"""

import logging

from threadchat.messages.schemas import MessageResponse
from threadchat.messages.service import MessageNotFoundError, MessageService, ParentNotFoundError
from threadchat.models import CompletionWarning, ContextMode, Principal
from threadchat.providers.base import GenerationRequest, ProviderError
from threadchat.providers.registry import find_provider

logger = logging.getLogger(__name__)

PLACEHOLDER_REPLY = "(placeholder reply)"
UPSTREAM_ERROR_REPLY = "(placeholder reply: the completion API returned an error)"
CALL_FAILED_REPLY = "(placeholder reply: the completion API call failed)"
EMPTY_REPLY = "(empty reply)"


class CompletionService:
    """Answers a message with an assistant reply stored as its child."""

    def __init__(
        self,
        message_service: MessageService,
        *,
        provider_name: str = "openai",
        model: str = "gpt-4o-mini",
        max_tokens: int = 2048,
    ) -> None:
        self._messages = message_service
        self._provider_name = provider_name
        self._model = model
        self._max_tokens = max_tokens

    async def complete(
        self, message_id: str, mode: ContextMode, principal: Principal
    ) -> MessageResponse:
        """Generate and persist the reply to message_id.

        Raises:
            MessageNotFoundError: If the message does not exist (or vanished mid-call).
            MessageAccessDeniedError: If its conversation is not the caller's.
        """
        target = await self._messages.get_authorized_message(message_id, principal)

        content, warning = await self._generate_reply(message_id, mode)

        metadata = None
        if warning is not None:
            metadata = {"completion_warning": warning.model_dump(exclude_none=True)}
        try:
            return await self._messages.create_message(
                target["conversation_id"],
                target["message_id"],
                "assistant",
                content,
                None,
                metadata=metadata,
            )
        except ParentNotFoundError:
            raise MessageNotFoundError(message_id)

    async def _generate_reply(
        self, message_id: str, mode: ContextMode
    ) -> tuple[str, CompletionWarning | None]:
        """Return (reply text, warning). Never raises for upstream failures."""
        provider = find_provider(self._provider_name)
        if provider is None:
            return PLACEHOLDER_REPLY, None

        context = await self._messages.build_context(message_id, mode)
        if not context:
            logger.warning("Empty context for message %s; skipping completion", message_id)
            return PLACEHOLDER_REPLY, CompletionWarning(details="empty context")

        request = GenerationRequest(
            model=self._model,
            messages=context,
            max_tokens=self._max_tokens,
        )
        try:
            result = await provider.generate(request)
        except ProviderError as e:
            logger.error(
                "Completion failed for message %s: provider=%s status=%s %s",
                message_id, e.provider, e.status_code, e.details,
            )
            warning = CompletionWarning(status=e.status_code, details=e.details)
            if e.status_code is not None:
                return UPSTREAM_ERROR_REPLY, warning
            return CALL_FAILED_REPLY, warning

        logger.info("Completed message %s with %s", message_id, result.model)
        text = result.content.strip()
        return (text or EMPTY_REPLY), None
