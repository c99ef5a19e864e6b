"""Message service: creates messages with derived tree metadata and serves tree views."""

from datetime import UTC, datetime
from uuid import uuid4

from threadchat.conversations.service import ConversationNotFoundError, ConversationService
from threadchat.db.connection import Database
from threadchat.messages.schemas import (
    ContextEntry,
    CreateMessageRequest,
    MessageResponse,
    SubtreeResponse,
    TimelineEntry,
)
from threadchat.messages.tree import MessageIndex, build_timeline, context_rows, to_prompt
from threadchat.models import ContextMode, Principal, Role
from threadchat.utils.json import dump_json_field, parse_json_field


class MessageService:
    """The message-tree engine.

    create_message, list_messages, build_context and subtree take no
    principal; the *_for methods authorize the caller first and are what the
    routers call.
    """

    def __init__(self, db: Database, conversations: ConversationService) -> None:
        self._db = db
        self._conversations = conversations

    # -- Engine --

    async def create_message(
        self,
        conversation_id: str,
        parent_id: str | None,
        role: Role,
        content: str,
        author_id: str | None,
        *,
        metadata: dict | None = None,
    ) -> MessageResponse:
        """Append a message, deriving thread_root_id and depth from the parent.

        Raises:
            ParentNotFoundError: If parent_id is not a message of this conversation.
        """
        message_id = str(uuid4())
        if parent_id is None:
            thread_root_id, depth = message_id, 0
        else:
            parent = await self._db.fetchone(
                "SELECT message_id, thread_root_id, depth FROM messages "
                "WHERE message_id = ? AND conversation_id = ?",
                (parent_id, conversation_id),
            )
            if parent is None:
                raise ParentNotFoundError(parent_id)
            thread_root_id, depth = parent["thread_root_id"], parent["depth"] + 1

        now = datetime.now(UTC).isoformat()
        await self._db.execute(
            """
            INSERT INTO messages
                (message_id, conversation_id, parent_id, thread_root_id, depth,
                 role, content, author_id, metadata, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message_id,
                conversation_id,
                parent_id,
                thread_root_id,
                depth,
                role,
                content,
                author_id,
                dump_json_field(metadata),
                now,
            ),
        )
        await self._conversations.touch(conversation_id, now)

        row = await self.get_message(message_id)
        assert row is not None
        return self._message_from_row(row)

    async def list_messages(self, conversation_id: str) -> list[MessageResponse]:
        """All messages of a conversation in creation order."""
        rows = await self._conversation_rows(conversation_id)
        return [self._message_from_row(row) for row in rows]

    async def get_message(self, message_id: str) -> dict | None:
        return await self._db.fetchone(
            "SELECT * FROM messages WHERE message_id = ?", (message_id,)
        )

    async def context_rows(self, message_id: str, mode: ContextMode) -> list[dict]:
        """Rows forming the context window for message_id. Empty if it is unknown."""
        target = await self.get_message(message_id)
        if target is None:
            return []
        index = MessageIndex(await self._conversation_rows(target["conversation_id"]))
        return context_rows(index, message_id, mode)

    async def build_context(self, message_id: str, mode: ContextMode) -> list[dict[str, str]]:
        """The context window as role/content pairs, ready for a completion call."""
        return to_prompt(await self.context_rows(message_id, mode))

    async def subtree(self, message_id: str) -> SubtreeResponse | None:
        """The message plus every message below it in its thread. None if unknown."""
        target = await self.get_message(message_id)
        if target is None:
            return None
        rows = await self._db.fetchall(
            "SELECT * FROM messages WHERE conversation_id = ? AND thread_root_id = ? "
            "ORDER BY created_at, rowid",
            (target["conversation_id"], target["thread_root_id"]),
        )
        index = MessageIndex(rows)
        return SubtreeResponse(
            root=self._message_from_row(target),
            descendants=[self._message_from_row(r) for r in index.descendants(message_id)],
        )

    # -- Authorized views --

    async def post_message(
        self, request: CreateMessageRequest, principal: Principal
    ) -> MessageResponse:
        """Create a message in a conversation the caller owns.

        User messages are authored by the caller; assistant messages have no author.
        """
        conversation = await self._conversations.find_owned(request.conversation_id, principal)
        if conversation is None:
            raise ConversationNotFoundError(request.conversation_id)
        return await self.create_message(
            request.conversation_id,
            request.parent_id,
            request.role,
            request.content,
            None if request.role == "assistant" else principal.user_id,
        )

    async def list_messages_for(
        self, conversation_id: str, principal: Principal
    ) -> list[MessageResponse]:
        await self._require_readable(conversation_id, principal)
        return await self.list_messages(conversation_id)

    async def timeline_for(
        self, conversation_id: str, principal: Principal
    ) -> list[TimelineEntry]:
        await self._require_readable(conversation_id, principal)
        index = MessageIndex(await self._conversation_rows(conversation_id))
        return [
            TimelineEntry(
                root=self._message_from_row(entry["root"]),
                reply=self._message_from_row(entry["reply"]) if entry["reply"] else None,
                reply_count=entry["reply_count"],
                tail_id=entry["tail_id"],
            )
            for entry in build_timeline(index)
        ]

    async def subtree_for(self, message_id: str, principal: Principal) -> SubtreeResponse:
        await self.get_authorized_message(message_id, principal)
        subtree = await self.subtree(message_id)
        if subtree is None:
            raise MessageNotFoundError(message_id)
        return subtree

    async def context_for(
        self, message_id: str, mode: ContextMode, principal: Principal
    ) -> list[ContextEntry]:
        target = await self.get_authorized_message(message_id, principal)
        thread_root = await self.get_message(target["thread_root_id"])
        if thread_root is None:
            raise ThreadRootNotFoundError(target["thread_root_id"])
        return [
            ContextEntry(
                message_id=row["message_id"],
                role=row["role"],
                content=row["content"],
                created_at=row["created_at"],
            )
            for row in await self.context_rows(message_id, mode)
        ]

    async def get_authorized_message(self, message_id: str, principal: Principal) -> dict:
        """The message row, if its conversation belongs to the caller.

        Raises:
            MessageNotFoundError: If the message does not exist.
            MessageAccessDeniedError: If the conversation is someone else's.
        """
        target = await self.get_message(message_id)
        if target is None:
            raise MessageNotFoundError(message_id)
        conversation = await self._conversations.find_owned(target["conversation_id"], principal)
        if conversation is None:
            raise MessageAccessDeniedError(message_id)
        return target

    # -- Helpers --

    async def _require_readable(self, conversation_id: str, principal: Principal) -> None:
        if await self._conversations.find_readable(conversation_id, principal) is None:
            raise ConversationNotFoundError(conversation_id)

    async def _conversation_rows(self, conversation_id: str) -> list[dict]:
        return await self._db.fetchall(
            "SELECT * FROM messages WHERE conversation_id = ? ORDER BY created_at, rowid",
            (conversation_id,),
        )

    @staticmethod
    def _message_from_row(row: dict) -> MessageResponse:
        return MessageResponse(
            message_id=row["message_id"],
            conversation_id=row["conversation_id"],
            parent_id=row["parent_id"],
            thread_root_id=row["thread_root_id"],
            depth=row["depth"],
            role=row["role"],
            content=row["content"],
            author_id=row["author_id"],
            metadata=parse_json_field(row["metadata"]),
            created_at=row["created_at"],
        )


class MessageNotFoundError(Exception):
    def __init__(self, message_id: str) -> None:
        self.message_id = message_id
        super().__init__(f"Message not found: {message_id}")


class MessageAccessDeniedError(Exception):
    def __init__(self, message_id: str) -> None:
        self.message_id = message_id
        super().__init__(f"Message belongs to another user's conversation: {message_id}")


class ParentNotFoundError(Exception):
    def __init__(self, parent_id: str) -> None:
        self.parent_id = parent_id
        super().__init__(f"Parent message not found in conversation: {parent_id}")


class ThreadRootNotFoundError(Exception):
    def __init__(self, thread_root_id: str) -> None:
        self.thread_root_id = thread_root_id
        super().__init__(f"Thread root not found: {thread_root_id}")
