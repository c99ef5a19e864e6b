"""Canonical data structures shared across the service.

Defined once here, referenced everywhere else.
"""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel

Role = Literal["user", "assistant"]
ContextMode = Literal["thread", "linear"]


class ErrorKind(StrEnum):
    """Values of the `error` field in failure responses."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    PARENT_NOT_FOUND = "PARENT_NOT_FOUND"
    THREAD_ROOT_NOT_FOUND = "THREAD_ROOT_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Principal(BaseModel):
    """The authenticated caller, resolved once per request and passed explicitly."""

    user_id: str
    email: str | None = None
    name: str | None = None
    is_admin: bool = False


class CompletionWarning(BaseModel):
    """Diagnostic attached to an assistant reply when the completion call failed."""

    status: int | None = None
    details: str


def parse_context_mode(raw: str | None) -> ContextMode:
    """Only an explicit "linear" selects linear mode; everything else is thread."""
    return "linear" if raw == "linear" else "thread"
