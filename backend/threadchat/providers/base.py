"""Abstract LLM provider interface and shared data types."""

from abc import ABC, abstractmethod

from pydantic import BaseModel

# Upstream response bodies are cut to this many characters in diagnostics
MAX_ERROR_BODY_CHARS = 500


class GenerationRequest(BaseModel):
    """Everything a provider needs to make an API call."""

    model: str
    messages: list[dict[str, str]]
    system_prompt: str | None = None
    max_tokens: int = 2048


class GenerationResult(BaseModel):
    """Reply text and the model that actually served it."""

    content: str
    model: str


class LLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'openai')."""
        ...

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Send a generation request. Returns the full result.

        Raises:
            ProviderError: On any SDK failure: a non-success status, a transport
                failure, or a response the SDK could not parse.
        """
        ...


class ProviderError(Exception):
    """A completion call that did not produce a response.

    status_code is None when no usable HTTP status came back (connection
    refused, timeout, malformed response).
    """

    def __init__(
        self,
        provider: str,
        details: str,
        *,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.provider = provider
        self.details = details
        self.status_code = status_code
        self.request_id = request_id
        super().__init__(f"{provider} completion failed (status={status_code}): {details}")

    @classmethod
    def from_status(
        cls, provider: str, status_code: int, body: str, request_id: str | None
    ) -> "ProviderError":
        details = f"request_id={request_id or 'n/a'} body={body[:MAX_ERROR_BODY_CHARS]}"
        return cls(provider, details, status_code=status_code, request_id=request_id)
