"""HTTP client for the StillWaters chat proxy."""

import logging

import httpx
from pydantic import ValidationError

from stillwaters.core.config import settings
from stillwaters.core.exceptions import ProxyUnavailableError, QuotaExceededError
from stillwaters.schemas.chat import ChatAnswer

logger = logging.getLogger(__name__)


class ProxyClient:
    """Asks the proxy a question and returns its structured answer."""

    def __init__(self, http: httpx.AsyncClient | None = None, base_url: str | None = None):
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=base_url or settings.proxy_url,
            timeout=settings.proxy_timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    async def ask(self, question: str) -> ChatAnswer:
        try:
            resp = await self.http.post("/api/chat", json={"question": question})
        except httpx.HTTPError as e:
            raise ProxyUnavailableError(f"Proxy unreachable: {e}") from e

        if resp.status_code == 429:
            raise QuotaExceededError(_error_message(resp) or "Too many requests")
        if resp.is_error:
            raise ProxyUnavailableError(
                f"Proxy returned {resp.status_code}: {_error_message(resp) or resp.text[:200]}"
            )

        try:
            return ChatAnswer.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ProxyUnavailableError(f"Proxy returned an unreadable answer: {e}") from e

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return ""
    return body.get("error", "") if isinstance(body, dict) else ""
