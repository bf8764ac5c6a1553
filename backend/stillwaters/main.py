import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stillwaters.api import chat
from stillwaters.core.config import settings
from stillwaters.core.exceptions import QuotaExceededError, StillWatersError
from stillwaters.services.llm import get_response_provider
from stillwaters.services.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to fetch wisdom from the waters."


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure logging based on debug setting
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s" if settings.debug
        else "%(levelname)-8s %(name)s: %(message)s",
    )

    # Provider is chosen once, by whether a credential is configured
    app.state.provider = get_response_provider()
    app.state.rate_limiter = SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    logger.info(f"{settings.app_name} proxy ready ({app.state.provider.name} provider)")

    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuotaExceededError)
async def quota_exceeded_handler(request: Request, exc: QuotaExceededError):
    return JSONResponse(status_code=429, content={"error": exc.message})


@app.exception_handler(StillWatersError)
async def failure_handler(request: Request, exc: StillWatersError):
    logger.error(f"Chat request failed: {exc}")
    return JSONResponse(status_code=500, content={"error": GENERIC_FAILURE})


@app.exception_handler(Exception)
async def unexpected_failure_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error handling {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": GENERIC_FAILURE})


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"error": f"Invalid request: {', '.join(fields)}"})


app.include_router(chat.router, prefix="/api/chat", tags=["chat"])


@app.get("/api/health")
async def health(request: Request):
    return {
        "status": "ok",
        "app": settings.app_name,
        "provider": request.app.state.provider.name,
    }


def run() -> None:
    import uvicorn

    uvicorn.run("stillwaters.main:app", host=settings.host, port=settings.port)
