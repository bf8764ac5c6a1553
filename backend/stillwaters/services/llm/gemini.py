"""Google Gemini answer provider."""

import asyncio
import logging

import httpx
from google import genai
from google.genai import errors

from stillwaters.core.config import is_usable_api_key, settings
from stillwaters.core.exceptions import NoCredentialError, UpstreamCallError
from stillwaters.schemas.chat import ChatAnswer
from stillwaters.services.llm.base import ResponseProvider, parse_answer

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are a wise, compassionate, and biblically grounded theological assistant named "StillWaters".
Answer gently and pastorally, stay faithful to scripture, and keep explanations concise.

User Question: "{question}"

Please provide a response in the following JSON format ONLY (no markdown code blocks):
{{
  "question": "{question}",
  "interpretations": [
    {{
      "tradition": "General/Historical/Theological",
      "view": "A concise explanation of the meaning.",
      "scriptures": [
        {{
          "reference": "Book Chapter:Verse",
          "text": "Full text of the verse",
          "translation": "NIV or ESV"
        }}
      ]
    }}
  ],
  "context": "Brief historical or literary context.",
  "application": "A practical application for the user's life.",
  "related_verses": ["Book Chapter:Verse", "Book Chapter:Verse"]
}}"""


def build_prompt(question: str) -> str:
    # Quotes would break out of the JSON example the model is asked to echo
    safe_question = question.replace('"', "'")
    return PROMPT_TEMPLATE.format(question=safe_question)


class LiveModelProvider(ResponseProvider):
    name = "live"

    def __init__(self, api_key: str | None = None, model: str | None = None, timeout: float | None = None):
        key = settings.gemini_api_key if api_key is None else api_key
        if not is_usable_api_key(key):
            raise NoCredentialError("Gemini API key not configured. Set STILLWATERS_GEMINI_API_KEY.")
        self.client = genai.Client(api_key=key)
        self.model = model or settings.gemini_model
        self.timeout = settings.upstream_timeout_seconds if timeout is None else timeout

    async def answer(self, question: str) -> ChatAnswer:
        logger.info(f"Calling Gemini ({self.model})...")
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=build_prompt(question),
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamCallError(f"Gemini did not answer within {self.timeout}s") from e
        except (errors.APIError, httpx.HTTPError) as e:
            raise UpstreamCallError(f"Gemini call failed: {e}") from e

        text = response.text or ""
        logger.debug(f"Gemini response text: {text[:300]}")
        return parse_answer(text)
