"""Identity resolution: session token -> Principal.

Sessions are owned by the external identity provider (Supabase Auth). This
module only asks it who a token belongs to; it never creates or refreshes
sessions itself.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from supabase import AsyncClient, AuthError

from threadchat.models import Principal

logger = logging.getLogger(__name__)

# Metadata keys checked, in order, for a display name
_NAME_KEYS = ("full_name", "name", "user_name", "preferred_username")


class IdentityProvider(ABC):
    """Abstract interface for resolving session tokens."""

    @abstractmethod
    async def resolve(self, token: str) -> Principal | None:
        """Return the principal for a token, or None if the session is invalid."""
        ...

    @abstractmethod
    async def sign_out(self, token: str) -> None:
        """Invalidate the session behind a token."""
        ...


class SupabaseIdentityProvider(IdentityProvider):
    """Resolves Supabase access tokens through the auth API."""

    def __init__(self, client: AsyncClient, admin_emails: frozenset[str] = frozenset()) -> None:
        self._client = client
        self._admin_emails = admin_emails

    async def resolve(self, token: str) -> Principal | None:
        try:
            response = await self._client.auth.get_user(token)
        except AuthError as e:
            logger.warning("Rejected session token: %s", e)
            return None
        user = getattr(response, "user", None)
        if user is None:
            return None
        return build_principal(
            user.id, user.email, user.user_metadata, admin_emails=self._admin_emails
        )

    async def sign_out(self, token: str) -> None:
        try:
            await self._client.auth.admin.sign_out(token)
        except AuthError as e:
            logger.warning("Sign-out failed: %s", e)


def build_principal(
    user_id: str,
    email: str | None,
    metadata: Mapping[str, Any] | None,
    *,
    admin_emails: frozenset[str] = frozenset(),
) -> Principal:
    """Build a Principal. Admin status is derived from the email alone."""
    is_admin = bool(email) and email.lower() in admin_emails
    return Principal(
        user_id=user_id,
        email=email,
        name=display_name(metadata),
        is_admin=is_admin,
    )


def display_name(metadata: Mapping[str, Any] | None) -> str | None:
    """First non-blank string among the known name keys in user metadata."""
    for key in _NAME_KEYS:
        value = (metadata or {}).get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
