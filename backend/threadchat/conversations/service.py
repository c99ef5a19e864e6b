"""Conversation service: owner-scoped CRUD over conversations, plus auto-titling."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from threadchat.conversations.schemas import ConversationResponse
from threadchat.conversations.titles import fallback_title, generate_title
from threadchat.db.connection import Database
from threadchat.models import Principal
from threadchat.providers.base import LLMProvider, ProviderError

logger = logging.getLogger(__name__)

# How many of the earliest messages feed the title
TITLE_SOURCE_MESSAGES = 6


class ConversationService:
    """Owner-scoped conversation CRUD.

    Reads allow an admin override; deletes and titling are owner-only. Every
    "not yours" outcome surfaces as ConversationNotFoundError so that callers
    cannot probe for other users' conversation ids.
    """

    def __init__(
        self,
        db: Database,
        title_provider: LLMProvider | None = None,
        title_model: str = "gpt-4o-mini",
    ) -> None:
        self._db = db
        self._title_provider = title_provider
        self._title_model = title_model

    async def create_conversation(
        self, principal: Principal, title: str | None = None
    ) -> ConversationResponse:
        conversation_id = str(uuid4())
        now = datetime.now(UTC).isoformat()
        await self._db.execute(
            """
            INSERT INTO conversations
                (conversation_id, owner_id, title, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (conversation_id, principal.user_id, title, now, now),
        )
        row = await self._find(conversation_id, owner_id=principal.user_id)
        assert row is not None
        return self._conversation_from_row(row)

    async def list_conversations(self, principal: Principal) -> list[ConversationResponse]:
        """Conversations owned by the caller, most recently active first."""
        rows = await self._db.fetchall(
            "SELECT * FROM conversations WHERE owner_id = ? "
            "ORDER BY updated_at DESC, rowid DESC",
            (principal.user_id,),
        )
        return [self._conversation_from_row(row) for row in rows]

    async def get_conversation(
        self, conversation_id: str, principal: Principal
    ) -> ConversationResponse:
        """Owner or admin may read. Raises ConversationNotFoundError otherwise."""
        row = await self.find_readable(conversation_id, principal)
        if row is None:
            raise ConversationNotFoundError(conversation_id)
        return self._conversation_from_row(row)

    async def delete_conversation(self, conversation_id: str, principal: Principal) -> None:
        """Delete a conversation and (by cascade) its messages. Owner only."""
        row = await self._find(conversation_id, owner_id=principal.user_id)
        if row is None:
            raise ConversationNotFoundError(conversation_id)
        await self._db.execute(
            "DELETE FROM conversations WHERE conversation_id = ?", (conversation_id,)
        )
        logger.info("Deleted conversation %s", conversation_id)

    async def auto_title(self, conversation_id: str, principal: Principal) -> str:
        """Title an untitled conversation from its opening messages.

        An existing non-blank title is returned as-is and never overwritten.
        """
        row = await self._find(conversation_id, owner_id=principal.user_id)
        if row is None:
            raise ConversationNotFoundError(conversation_id)
        if row["title"] and row["title"].strip():
            return row["title"]

        messages = await self._db.fetchall(
            "SELECT role, content, parent_id FROM messages WHERE conversation_id = ? "
            "ORDER BY created_at, rowid LIMIT ?",
            (conversation_id, TITLE_SOURCE_MESSAGES),
        )
        first_user = next(
            (m for m in messages if m["role"] == "user" and m["parent_id"] is None),
            None,
        )
        source = first_user or (messages[0] if messages else None)
        title = fallback_title(source["content"] if source else "")

        if self._title_provider is not None and messages:
            try:
                generated = await generate_title(
                    self._title_provider, self._title_model, messages
                )
            except ProviderError as e:
                logger.warning("Title generation failed for %s: %s", conversation_id, e)
            else:
                if generated:
                    title = generated

        await self._db.execute(
            "UPDATE conversations SET title = ? WHERE conversation_id = ?",
            (title, conversation_id),
        )
        return title

    async def find_owned(self, conversation_id: str, principal: Principal) -> dict | None:
        """The conversation row if the caller owns it. Admins get no override."""
        return await self._find(conversation_id, owner_id=principal.user_id)

    async def find_readable(self, conversation_id: str, principal: Principal) -> dict | None:
        """The conversation row if the caller owns it or is an admin."""
        owner_id = None if principal.is_admin else principal.user_id
        return await self._find(conversation_id, owner_id=owner_id)

    async def touch(self, conversation_id: str, timestamp: str) -> None:
        """Bump updated_at, e.g. after a message is appended."""
        await self._db.execute(
            "UPDATE conversations SET updated_at = ? WHERE conversation_id = ?",
            (timestamp, conversation_id),
        )

    async def _find(self, conversation_id: str, *, owner_id: str | None) -> dict | None:
        if owner_id is None:
            return await self._db.fetchone(
                "SELECT * FROM conversations WHERE conversation_id = ?",
                (conversation_id,),
            )
        return await self._db.fetchone(
            "SELECT * FROM conversations WHERE conversation_id = ? AND owner_id = ?",
            (conversation_id, owner_id),
        )

    @staticmethod
    def _conversation_from_row(row: dict) -> ConversationResponse:
        return ConversationResponse(
            conversation_id=row["conversation_id"],
            title=row["title"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class ConversationNotFoundError(Exception):
    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")
