"""Conversation and message persistence for chat sessions."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from stillwaters.models.conversation import DEFAULT_SUMMARY, ChatMessage, Conversation

logger = logging.getLogger(__name__)


class ConversationRepository:
    """Reads and writes conversations and their messages, always scoped to a user."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_conversation(self, user_id: str, summary: str = DEFAULT_SUMMARY) -> Conversation:
        with Session(self.engine) as session:
            conv = Conversation(user_id=user_id, summary=summary)
            session.add(conv)
            session.commit()
            session.refresh(conv)
            logger.debug(f"Created conversation {conv.id} for user {user_id}")
            return conv

    def add_message(
        self,
        conversation_id: int,
        message_id: str,
        sender: str,
        text: str,
        data: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> ChatMessage:
        with Session(self.engine) as session:
            msg = ChatMessage(
                id=message_id,
                conversation_id=conversation_id,
                sender=sender,
                text=text,
                data=data,
            )
            if created_at is not None:
                msg.created_at = created_at
            session.add(msg)
            session.commit()
            session.refresh(msg)
            return msg

    def list_messages(self, conversation_id: int, user_id: str | None = None) -> list[ChatMessage]:
        """Messages in creation order. With `user_id`, only if that user owns the conversation."""
        with Session(self.engine) as session:
            statement = select(ChatMessage).where(ChatMessage.conversation_id == conversation_id)
            if user_id is not None:
                statement = statement.join(Conversation).where(Conversation.user_id == user_id)
            return list(session.exec(
                statement.order_by(ChatMessage.created_at)  # type: ignore
            ).all())

    def list_conversations(self, user_id: str) -> list[Conversation]:
        with Session(self.engine) as session:
            return list(session.exec(
                select(Conversation)
                .where(Conversation.user_id == user_id)
                .order_by(Conversation.created_at.desc())  # type: ignore
            ).all())

    def get_conversation(self, conversation_id: int) -> Conversation | None:
        with Session(self.engine) as session:
            return session.get(Conversation, conversation_id)

    def rename_if_placeholder(self, conversation_id: int, summary: str) -> bool:
        """Set the summary only while it still holds the default. Returns True if renamed."""
        with Session(self.engine) as session:
            conv = session.get(Conversation, conversation_id)
            if not conv or conv.summary != DEFAULT_SUMMARY:
                return False
            conv.summary = summary
            session.add(conv)
            session.commit()
            return True

    def delete_conversation(self, user_id: str, conversation_id: int) -> bool:
        with Session(self.engine) as session:
            conv = session.get(Conversation, conversation_id)
            if not conv or conv.user_id != user_id:
                logger.debug(f"Delete: conversation {conversation_id} not found for user {user_id}")
                return False

            # Delete messages first
            messages = session.exec(
                select(ChatMessage).where(ChatMessage.conversation_id == conversation_id)
            ).all()
            for msg in messages:
                session.delete(msg)

            session.delete(conv)
            session.commit()
            logger.debug(f"Deleted conversation {conversation_id}")
            return True
