"""Conversation and message models for chat history persistence."""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel

DEFAULT_SUMMARY = "New Conversation"


class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"  # type: ignore[assignment]

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    summary: str = Field(default=DEFAULT_SUMMARY)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    messages: list["ChatMessage"] = Relationship(back_populates="conversation")


class ChatMessage(SQLModel, table=True):
    __tablename__ = "messages"  # type: ignore[assignment]

    id: str = Field(primary_key=True)  # generated by the client
    conversation_id: int = Field(foreign_key="conversations.id", index=True)
    sender: str  # "user" | "bot"
    text: str
    # "metadata" is reserved on declarative classes, so only the column carries that name
    data: Optional[dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    conversation: Optional[Conversation] = Relationship(back_populates="messages")
