"""OpenAI LLM provider backed by the Chat Completions API."""

from typing import Any

from openai import APIError, APIStatusError, AsyncOpenAI

from threadchat.providers.base import (
    GenerationRequest,
    GenerationResult,
    LLMProvider,
    ProviderError,
)


class OpenAIProvider(LLMProvider):
    """LLM provider backed by OpenAI's Chat Completions API."""

    def __init__(self, *, client: AsyncOpenAI | None = None, api_key: str | None = None) -> None:
        self._client = client if client is not None else AsyncOpenAI(api_key=api_key)

    @property
    def name(self) -> str:
        return "openai"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        params = self._build_params(request)
        try:
            response = await self._client.chat.completions.create(**params)
        except APIStatusError as e:
            raise ProviderError.from_status(
                self.name, e.status_code, e.response.text, e.request_id
            ) from e
        except APIError as e:
            raise ProviderError(self.name, str(e)) from e

        # A 2xx with no choices is an empty reply, not a failure
        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        return GenerationResult(content=content, model=response.model or request.model)

    @staticmethod
    def _build_params(request: GenerationRequest) -> dict[str, Any]:
        """Build kwargs dict for client.chat.completions.create()."""
        messages: list[dict[str, str]] = []

        # System prompt → prepended as system message
        if request.system_prompt is not None:
            messages.append({"role": "system", "content": request.system_prompt})

        messages.extend(
            {"role": m["role"], "content": m["content"]} for m in request.messages
        )
        return {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": messages,
        }
