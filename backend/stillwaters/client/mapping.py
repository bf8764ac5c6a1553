"""Turning proxy answers into chat messages.

Mapping policy:

- The primary interpretation is ``interpretations[0]``. Its ``view`` becomes
  the explanation message, which carries the whole answer as metadata.
- The primary citation is the first scripture of the primary interpretation,
  or the answer's top-level ``primary_scripture`` when that list is empty.
  It becomes a separate verse message, stamped 100 ms after the explanation
  so that it always sorts after it.

Other interpretations and citations are kept in the explanation's metadata;
showing them is a matter of adding messages here.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from stillwaters.schemas.chat import ChatAnswer, Interpretation, Scripture

USER = "user"
BOT = "bot"

VERSE_DELAY = timedelta(milliseconds=100)

CONNECTION_TROUBLE_TEXT = (
    "I'm having trouble connecting to the waters right now. Please try again later."
)
SLOW_DOWN_TEXT = (
    "You've asked many questions in a short time. Please rest a while and try again in an hour."
)


@dataclass
class SessionMessage:
    text: str
    sender: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def is_verse(self) -> bool:
        return bool(self.data and self.data.get("isVerse"))


def primary_interpretation(answer: ChatAnswer) -> Interpretation:
    return answer.interpretations[0]


def primary_citation(answer: ChatAnswer) -> Scripture | None:
    interpretation = primary_interpretation(answer)
    if interpretation.scriptures:
        return interpretation.scriptures[0]
    return answer.primary_scripture


def format_verse(scripture: Scripture) -> str:
    attribution = f"— {scripture.reference}"
    if scripture.translation:
        attribution += f" ({scripture.translation})"
    return f'"{scripture.text}"\n\n{attribution}'


def answer_to_messages(answer: ChatAnswer, now: datetime) -> list[SessionMessage]:
    """Explanation first, then the verse message if the answer cites scripture."""
    messages = [
        SessionMessage(
            text=primary_interpretation(answer).view,
            sender=BOT,
            timestamp=now,
            data=answer.model_dump(exclude_none=True),
        )
    ]

    scripture = primary_citation(answer)
    if scripture is not None:
        messages.append(
            SessionMessage(
                text=format_verse(scripture),
                sender=BOT,
                timestamp=now + VERSE_DELAY,
                data={
                    "isVerse": True,
                    "reference": scripture.reference,
                    "translation": scripture.translation,
                },
            )
        )
    return messages


def summarize(question: str, limit: int = 30) -> str:
    """Conversation title: the question, cut to `limit` characters plus an ellipsis."""
    return question if len(question) <= limit else question[:limit] + "..."
