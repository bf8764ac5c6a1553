"""Chat proxy - forwards questions to the answer provider and returns structured answers."""

import logging

from fastapi import APIRouter, Depends, Request

from stillwaters.core.exceptions import QuotaExceededError
from stillwaters.schemas.chat import ChatAnswer, ChatRequest, ErrorResponse
from stillwaters.services.llm.base import ResponseProvider
from stillwaters.services.rate_limit import SlidingWindowRateLimiter

router = APIRouter()
logger = logging.getLogger(__name__)


def get_provider(request: Request) -> ResponseProvider:
    return request.app.state.provider


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.rate_limiter


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce_quota(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> None:
    caller = client_address(request)
    if not limiter.hit(caller):
        logger.info(f"Quota exceeded for {caller}")
        raise QuotaExceededError()


@router.post(
    "",
    response_model=ChatAnswer,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_quota)],
    responses={429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(body: ChatRequest, provider: ResponseProvider = Depends(get_provider)):
    return await provider.answer(body.question)
