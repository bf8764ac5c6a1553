"""Abstract answer provider interface. All providers must implement this."""

import json
import re
from abc import ABC, abstractmethod

from pydantic import ValidationError

from stillwaters.core.exceptions import ResponseParseError
from stillwaters.schemas.chat import ChatAnswer

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class ResponseProvider(ABC):
    name: str = "base"

    @abstractmethod
    async def answer(self, question: str) -> ChatAnswer:
        """Answer a question with a structured, scripture-grounded response."""
        ...


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes wraps its JSON in."""
    return _CODE_FENCE.sub("", text).strip()


def parse_answer(text: str) -> ChatAnswer:
    """Parse raw model output into a ChatAnswer. Raises ResponseParseError."""
    cleaned = strip_code_fences(text or "")
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Model output is not JSON: {e}", raw_output=text) from e

    try:
        return ChatAnswer.model_validate(payload)
    except ValidationError as e:
        raise ResponseParseError(f"Model output has the wrong shape: {e}", raw_output=text) from e
