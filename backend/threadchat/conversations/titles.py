"""Short conversation titles: a deterministic fallback and a model-written one."""

import re

from threadchat.providers.base import GenerationRequest, LLMProvider

FALLBACK_TITLE = "Untitled"
FALLBACK_TITLE_CHARS = 30
GENERATED_TITLE_CHARS = 40

TITLE_SYSTEM_PROMPT = (
    "You write titles for chat conversations. Reply with a short title for the "
    "conversation below and nothing else: at most 20 characters, no quotes, "
    "no trailing punctuation."
)

_WHITESPACE = re.compile(r"\s+")
_QUOTE_EDGES = re.compile(r'^["「]|["」]$')


def fallback_title(text: str) -> str:
    """Collapse whitespace and cut to a fixed budget, with an ellipsis if cut."""
    collapsed = _WHITESPACE.sub(" ", text).strip()
    if not collapsed:
        return FALLBACK_TITLE
    if len(collapsed) <= FALLBACK_TITLE_CHARS:
        return collapsed
    return f"{collapsed[:FALLBACK_TITLE_CHARS]}…"


def clean_generated_title(raw: str) -> str:
    """Strip one layer of surrounding quotes and cap the length."""
    return _QUOTE_EDGES.sub("", raw.strip()).strip()[:GENERATED_TITLE_CHARS]


async def generate_title(
    provider: LLMProvider, model: str, messages: list[dict]
) -> str | None:
    """Ask the provider for a title. None when the reply is blank.

    Raises:
        ProviderError: If the call fails.
    """
    request = GenerationRequest(
        model=model,
        system_prompt=TITLE_SYSTEM_PROMPT,
        messages=[
            {
                "role": "assistant" if m["role"] == "assistant" else "user",
                "content": m["content"],
            }
            for m in messages
        ],
        max_tokens=64,
    )
    result = await provider.generate(request)
    title = clean_generated_title(result.content)
    return title or None
