"""Canned provider used when no Gemini key is configured."""

import asyncio
import logging

from stillwaters.core.config import settings
from stillwaters.schemas.chat import ChatAnswer, Interpretation, Scripture
from stillwaters.services.llm.base import ResponseProvider

logger = logging.getLogger(__name__)

_PSALM_23_2 = Scripture(
    reference="Psalm 23:2",
    text="He makes me lie down in green pastures, he leads me beside quiet waters.",
    translation="NIV",
)


class MockProvider(ResponseProvider):
    name = "mock"

    def __init__(self, delay_seconds: float | None = None):
        self.delay_seconds = settings.mock_delay_seconds if delay_seconds is None else delay_seconds

    async def answer(self, question: str) -> ChatAnswer:
        logger.info("Using mock response (no API key)")
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        return ChatAnswer(
            question=question,
            primary_scripture=_PSALM_23_2,
            interpretations=[
                Interpretation(
                    tradition="General",
                    view=(
                        "This verse speaks to the peace and restoration that God provides. "
                        "'Green pastures' symbolize abundance and rest, while 'quiet waters' "
                        "represent a state of calm and refreshment for the soul."
                    ),
                    scriptures=[_PSALM_23_2],
                )
            ],
            context=(
                "David, the shepherd king, writes this psalm expressing trust in God's "
                "provision and protection."
            ),
            application=(
                "Take a moment today to pause and allow God to restore your soul, "
                "trusting that He knows what you need for rest."
            ),
            related_verses=["Philippians 4:7", "Matthew 11:28"],
        )
