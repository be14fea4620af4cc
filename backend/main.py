import json
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from starlette.concurrency import run_in_threadpool

from config import SERVICE_NAME, VERSION, ConfigError, Settings, load_settings
from errors import (
    InternalError,
    InvalidInput,
    PayloadTooLarge,
    PortraitError,
    RateLimited,
)
from models import ErrorResponse, HealthResponse, PortraitResponse
from services.normalizer import normalize
from services.prompt_builder import build_prompt
from services.rate_limiter import SlidingWindowLimiter
from services.upstream import UpstreamClient, get_upstream_client
from services.validation import validate_portrait_request

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("moodverse")

MAX_BODY_BYTES = 10 * 1024

# Rate limits
PORTRAIT_LIMIT = 20
PORTRAIT_WINDOW_SECONDS = 60 * 60
GENERAL_LIMIT = 100
GENERAL_WINDOW_SECONDS = 15 * 60


@dataclass
class AppContext:
    """Process-scoped state shared by every request."""

    settings: Settings
    upstream: UpstreamClient
    portrait_limiter: SlidingWindowLimiter
    general_limiter: SlidingWindowLimiter


def build_context(settings: Settings) -> AppContext:
    return AppContext(
        settings=settings,
        upstream=get_upstream_client(settings),
        portrait_limiter=SlidingWindowLimiter(PORTRAIT_LIMIT, PORTRAIT_WINDOW_SECONDS),
        general_limiter=SlidingWindowLimiter(GENERAL_LIMIT, GENERAL_WINDOW_SECONDS),
    )


# Dependencies
def get_context(request: Request) -> AppContext:
    return request.app.state.context


def client_key(request: Request, settings: Settings) -> str:
    if settings.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # one trusted proxy hop: the address it saw is the last entry
            return forwarded.split(",")[-1].strip()
    return request.client.host if request.client else "unknown"


def enforce_portrait_limit(
    request: Request, response: Response, ctx: AppContext = Depends(get_context)
):
    key = client_key(request, ctx.settings)
    state = ctx.portrait_limiter.hit(key)
    if not state.allowed:
        logger.warning(f"Portrait rate limit hit for {key}")
        raise RateLimited(
            "Too many requests. Please wait before generating more portraits.",
            retry_after="Try again in 1 hour.",
            retry_after_seconds=state.reset_after,
        )
    response.headers["RateLimit-Limit"] = str(state.limit)
    response.headers["RateLimit-Remaining"] = str(state.remaining)
    response.headers["RateLimit-Reset"] = str(state.reset_after)


def error_response(exc: PortraitError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after_seconds:
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_body(), headers=headers
    )


async def portrait_error_handler(request: Request, exc: PortraitError):
    return error_response(exc)


async def general_rate_limit(request: Request, call_next):
    ctx: AppContext = request.app.state.context
    key = client_key(request, ctx.settings)
    state = ctx.general_limiter.hit(key)
    if not state.allowed:
        logger.warning(f"General rate limit hit for {key}")
        return error_response(RateLimited(retry_after_seconds=state.reset_after))
    return await call_next(request)


async def read_json_body(request: Request) -> Any:
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        raise PayloadTooLarge()

    # stop reading as soon as the limit is passed, whatever the header said
    raw = bytearray()
    async for chunk in request.stream():
        raw.extend(chunk)
        if len(raw) > MAX_BODY_BYTES:
            raise PayloadTooLarge()
    try:
        return json.loads(raw)
    except ValueError:
        raise InvalidInput("Invalid request body.")


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(
        status="ok",
        service=SERVICE_NAME,
        version=VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.post(
    "/api/generate-portrait",
    response_model=PortraitResponse,
    responses={
        code: {"model": ErrorResponse} for code in (400, 413, 429, 500, 502)
    },
    dependencies=[Depends(enforce_portrait_limit)],
)
async def generate_portrait(request: Request, ctx: AppContext = Depends(get_context)):
    body = await read_json_body(request)
    portrait = validate_portrait_request(body)
    prompt = build_prompt(portrait)

    try:
        logger.info(
            f"Generating portrait: mood={portrait.mood!r}, energy={portrait.energy}"
        )
        # requests blocks, so the call runs in the worker pool
        upstream_response = await run_in_threadpool(ctx.upstream.complete, prompt)
        reading = normalize(upstream_response)
    except PortraitError:
        raise
    except Exception as e:
        logger.exception(f"Server error: {e}")
        raise InternalError()

    return PortraitResponse(success=True, reading=reading)


@router.get("/{full_path:path}")
def serve_frontend(full_path: str, ctx: AppContext = Depends(get_context)):
    # Static files first, then index.html for every other path (SPA routing)
    static_dir = ctx.settings.static_dir.resolve()
    if full_path:
        candidate = (static_dir / full_path).resolve()
        if candidate.is_relative_to(static_dir) and candidate.is_file():
            return FileResponse(candidate)

    index = static_dir / "index.html"
    if index.is_file():
        return HTMLResponse(content=index.read_text(encoding="utf-8"))
    return Response(content="Frontend not found", status_code=404)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.context.settings
    logger.info(f"Moodverse server ready on port {settings.port}")
    logger.info(f"Provider: {settings.provider} ({settings.model})")
    logger.info(f"API key secured ({settings.masked_key})")
    yield
    logger.info("Moodverse server shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Builds the app; reads the environment when no settings are given."""
    if settings is None:
        settings = load_settings()

    app = FastAPI(title=SERVICE_NAME, version=VERSION, lifespan=lifespan)
    app.state.context = build_context(settings)

    app.add_exception_handler(PortraitError, portrait_error_handler)
    app.middleware("http")(general_rate_limit)
    # outermost: rate-limited responses carry CORS headers too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


try:
    app = create_app()
except ConfigError as e:
    logger.error(f"ERROR: {e}")
    sys.exit(1)


def run():
    uvicorn.run(app, host="0.0.0.0", port=app.state.context.settings.port)


if __name__ == "__main__":
    run()
