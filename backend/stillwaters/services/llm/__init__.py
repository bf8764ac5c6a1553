"""Answer provider factory."""

import logging

from stillwaters.core.exceptions import NoCredentialError
from stillwaters.services.llm.base import ResponseProvider

logger = logging.getLogger(__name__)


def get_response_provider() -> ResponseProvider:
    """Return the live Gemini provider when a key is configured, otherwise the mock."""
    try:
        from stillwaters.services.llm.gemini import LiveModelProvider
        return LiveModelProvider()
    except NoCredentialError as e:
        logger.warning(f"{e} Serving mock responses.")
        from stillwaters.services.llm.mock import MockProvider
        return MockProvider()
