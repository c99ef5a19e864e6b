"""Anthropic (Claude) LLM provider implementation."""

from typing import Any

from anthropic import APIError, APIStatusError, AsyncAnthropic

from threadchat.providers.base import (
    GenerationRequest,
    GenerationResult,
    LLMProvider,
    ProviderError,
)


class AnthropicProvider(LLMProvider):
    """LLM provider backed by Anthropic's Messages API."""

    def __init__(self, client: AsyncAnthropic) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        params = self._build_params(request)
        try:
            response = await self._client.messages.create(**params)
        except APIStatusError as e:
            raise ProviderError.from_status(
                self.name, e.status_code, e.response.text, e.request_id
            ) from e
        except APIError as e:
            raise ProviderError(self.name, str(e)) from e

        return GenerationResult(
            content=self._extract_text(response),
            model=response.model or request.model,
        )

    @staticmethod
    def _build_params(request: GenerationRequest) -> dict[str, Any]:
        """Build kwargs dict for client.messages.create()."""
        params: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": [
                {"role": m["role"], "content": m["content"]} for m in request.messages
            ],
        }
        if request.system_prompt is not None:
            params["system"] = request.system_prompt
        return params

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Extract text content from Anthropic Message response."""
        parts = []
        for block in response.content or []:
            if block.type == "text":
                parts.append(block.text)
        return "".join(parts)
