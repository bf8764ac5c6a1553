from stillwaters.models.conversation import DEFAULT_SUMMARY, ChatMessage, Conversation

__all__ = ["DEFAULT_SUMMARY", "ChatMessage", "Conversation"]
