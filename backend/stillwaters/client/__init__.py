"""Client-side chat session and its proxy client."""

from sqlalchemy.engine import Engine

from stillwaters.client.api import ProxyClient
from stillwaters.client.mapping import SessionMessage
from stillwaters.client.session import ChatSession
from stillwaters.core import database
from stillwaters.services.conversation_store import ConversationRepository


def create_session(
    user_id: str | None,
    engine: Engine | None = None,
    proxy: ProxyClient | None = None,
) -> ChatSession:
    """Build a ChatSession on the configured database and proxy."""
    bind = engine or database.engine
    database.init_db(bind)
    return ChatSession(
        user_id=user_id,
        repository=ConversationRepository(bind),
        proxy=proxy or ProxyClient(),
    )


__all__ = ["ChatSession", "ProxyClient", "SessionMessage", "create_session"]
