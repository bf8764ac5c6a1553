"""Chat session - the client-side store behind the chat screen.

A ChatSession holds the messages of the active conversation, appends them
optimistically, asks the proxy for answers and persists everything in the
background. It is owned by whoever shows the chat (use it as an async
context manager to tie it to that owner's lifetime).

Every operation that replaces the visible conversation bumps an epoch. A
send remembers the epoch it started in and drops its answer if the session
has moved on by the time the proxy replies.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Coroutine

from sqlalchemy.exc import SQLAlchemyError

from stillwaters.client.api import ProxyClient
from stillwaters.client.mapping import (
    BOT,
    CONNECTION_TROUBLE_TEXT,
    SLOW_DOWN_TEXT,
    USER,
    SessionMessage,
    answer_to_messages,
    summarize,
)
from stillwaters.core.exceptions import QuotaExceededError
from stillwaters.models.conversation import Conversation
from stillwaters.services.conversation_store import ConversationRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatSession:
    def __init__(
        self,
        user_id: str | None,
        repository: ConversationRepository,
        proxy: ProxyClient,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.user_id = user_id
        self.repository = repository
        self.proxy = proxy
        self._clock = clock

        self.messages: list[SessionMessage] = []
        self.conversation_id: int | None = None
        self.is_loading = False
        self.conversations: list[Conversation] = []

        self._epoch = 0
        self._pending: set[asyncio.Task] = set()

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Unmount: in-flight sends are dropped, queued writes are finished, the proxy client is closed."""
        self._epoch += 1
        await self.flush()
        await self.proxy.aclose()

    async def flush(self) -> None:
        """Wait for all background writes scheduled so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # --- Chat ---

    async def send_user_message(self, text: str) -> None:
        question = text.strip()
        if not question:
            return

        epoch = self._epoch
        user_message = SessionMessage(text=question, sender=USER, timestamp=self._clock())
        self.messages.append(user_message)
        self.is_loading = True

        try:
            conversation_id = self._ensure_conversation()
            self._persist(conversation_id, user_message)

            answered = False
            try:
                answer = await self.proxy.ask(question)
            except QuotaExceededError as e:
                logger.info(f"Proxy quota reached: {e}")
                replies = [SessionMessage(text=SLOW_DOWN_TEXT, sender=BOT, timestamp=self._clock())]
            except Exception as e:
                logger.error(f"Chat error: {e}")
                replies = [SessionMessage(text=CONNECTION_TROUBLE_TEXT, sender=BOT, timestamp=self._clock())]
            else:
                replies = answer_to_messages(answer, self._clock())
                answered = True

            if self._epoch != epoch:
                logger.debug("Session changed while waiting for the proxy; dropping its answer")
                return

            self.messages.extend(replies)
            for reply in replies:
                self._persist(conversation_id, reply)

            if answered and conversation_id is not None:
                self._schedule(self._name_conversation(conversation_id, question))
        finally:
            if self._epoch == epoch:
                self.is_loading = False

    def clear_messages(self) -> None:
        """Start a fresh, not yet persisted session."""
        self._reset(None)

    async def load_conversation(self, conversation_id: int) -> None:
        self._reset(conversation_id)
        self.is_loading = True
        epoch = self._epoch

        # Writes still queued for this conversation must land before we read it back
        await self.flush()
        try:
            rows = self.repository.list_messages(conversation_id, user_id=self.user_id) if self.user_id else []
        except SQLAlchemyError as e:
            logger.error(f"Error loading conversation {conversation_id}: {e}")
            rows = []

        if self._epoch != epoch:
            return
        self.messages = [
            SessionMessage(
                id=row.id,
                text=row.text,
                sender=row.sender,
                timestamp=row.created_at,
                data=row.data,
            )
            for row in rows
        ]
        self.is_loading = False

    # --- Conversations ---

    async def fetch_conversations(self) -> list[Conversation]:
        if not self.user_id:
            return []
        try:
            self.conversations = self.repository.list_conversations(self.user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching conversations: {e}")
        return self.conversations

    async def delete_conversation(self, conversation_id: int) -> bool:
        if not self.user_id:
            return False

        await self.flush()
        try:
            deleted = self.repository.delete_conversation(self.user_id, conversation_id)
        except SQLAlchemyError as e:
            logger.error(f"Error deleting conversation {conversation_id}: {e}")
            return False

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.conversation_id == conversation_id:
            self._reset(None)
        return deleted

    # --- Internals ---

    def _reset(self, conversation_id: int | None) -> None:
        self._epoch += 1
        self.messages = []
        self.conversation_id = conversation_id
        self.is_loading = False

    def _ensure_conversation(self) -> int | None:
        """Return the active conversation id, creating the conversation on first use."""
        if self.conversation_id is not None:
            return self.conversation_id
        if not self.user_id:
            return None

        try:
            conv = self.repository.create_conversation(self.user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error creating conversation: {e}")
            return None

        self.conversation_id = conv.id
        self.conversations.insert(0, conv)
        return conv.id

    def _schedule(self, coro: Coroutine) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _persist(self, conversation_id: int | None, message: SessionMessage) -> None:
        if conversation_id is None:
            return
        self._schedule(self._write_message(conversation_id, message))

    async def _write_message(self, conversation_id: int, message: SessionMessage) -> None:
        try:
            self.repository.add_message(
                conversation_id,
                message_id=message.id,
                sender=message.sender,
                text=message.text,
                data=message.data,
                created_at=message.timestamp,
            )
        except SQLAlchemyError as e:
            logger.error(f"Error logging message: {e}")

    async def _name_conversation(self, conversation_id: int, question: str) -> None:
        summary = summarize(question)
        try:
            renamed = self.repository.rename_if_placeholder(conversation_id, summary)
        except SQLAlchemyError as e:
            logger.error(f"Error renaming conversation {conversation_id}: {e}")
            return

        if renamed:
            for conv in self.conversations:
                if conv.id == conversation_id:
                    conv.summary = summary
