import asyncio
import contextlib
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.ai_routes import router as ai_router
from .errors import bad_gateway, error_response, service_unavailable
from .logging_config import logger
from .routing import FailureTracker, NoModelAvailable
from .services import CompletionService, ConversationStore
from .settings import Settings, settings
from .upstream import UpstreamChatClient, UpstreamError


async def handle_unexpected_error(request: Request, exc: Exception):
    """
    Global handler: structured 500 body plus a log line carrying the error id.
    """

    error_id = uuid.uuid4().hex
    logger.exception(
        "Unhandled error %s %s (error_id=%s)",
        request.method,
        request.url.path,
        error_id,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error_code": "internal_error",
            "message": "Internal server error, please try again later",
            "error_id": error_id,
        },
    )


async def handle_no_model_available(request: Request, exc: NoModelAvailable):
    logger.warning(
        "No model available for %s %s (task_type=%s): %s",
        request.method,
        request.url.path,
        exc.task_type,
        exc,
    )
    details = {"task_type": exc.task_type}
    if exc.skipped_model_ids:
        details["skipped_models"] = exc.skipped_model_ids
    if exc.last_error is not None:
        details["last_error"] = str(exc.last_error)
    return error_response(service_unavailable(str(exc), details=details))


async def handle_upstream_error(request: Request, exc: UpstreamError):
    logger.error(
        "Upstream error for %s %s: status=%s code=%s message=%s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
        exc.message,
    )
    return error_response(
        bad_gateway(
            exc.message,
            details={"status_code": exc.status_code, "code": exc.code},
        )
    )


def build_completion_service(
    http_client: httpx.AsyncClient, config: Settings = settings
) -> CompletionService:
    store = ConversationStore(
        timeout_seconds=config.session_timeout_seconds,
        max_history=config.max_history_length,
    )
    tracker = FailureTracker(threshold=config.model_failure_threshold)
    client = UpstreamChatClient(
        client=http_client,
        base_url=config.upstream_base_url,
        api_token=config.cloudflare_api_token,
    )
    return CompletionService(
        store=store,
        tracker=tracker,
        client=client,
        default_temperature=config.default_temperature,
        default_max_tokens=config.default_max_tokens,
        single_default_max_tokens=config.single_default_max_tokens,
    )


async def reap_sessions_periodically(service: CompletionService, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            service.cleanup_expired_sessions()
        except Exception:
            logger.exception("Background session cleanup failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle:
    - startup: build the store, tracker and upstream client unless a
      CompletionService was injected, and start the session sweep if enabled
    - shutdown: stop the sweep and close the HTTP client
    """
    if getattr(app.state, "completion_service", None) is not None:
        yield
        return

    async with httpx.AsyncClient(timeout=settings.upstream_timeout) as http_client:
        service = build_completion_service(http_client)
        app.state.completion_service = service

        reaper: Optional[asyncio.Task] = None
        if settings.session_reap_interval_seconds > 0:
            logger.info(
                "Starting background session cleanup every %ss",
                settings.session_reap_interval_seconds,
            )
            reaper = asyncio.create_task(
                reap_sessions_periodically(service, settings.session_reap_interval_seconds)
            )
        try:
            yield
        finally:
            if reaper is not None:
                reaper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reaper
            app.state.completion_service = None


def create_app(*, completion_service: Optional[CompletionService] = None) -> FastAPI:
    from fastapi.middleware.cors import CORSMiddleware

    cors_origins = (
        [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
        if settings.cors_allow_origins
        else []
    )

    docs_url = "/docs" if settings.enable_api_docs else None
    redoc_url = "/redoc" if settings.enable_api_docs else None
    openapi_url = "/openapi.json" if settings.enable_api_docs else None

    app = FastAPI(
        title="Completion Gateway",
        version="0.1.0",
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        lifespan=lifespan,
    )
    app.state.completion_service = completion_service

    app.add_exception_handler(NoModelAvailable, handle_no_model_available)
    app.add_exception_handler(UpstreamError, handle_upstream_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    if not settings.enable_api_docs:
        logger.info(
            "API docs routes are disabled (environment=%s); set ENABLE_API_DOCS=true to enable.",
            settings.environment,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ai_router)

    return app


__all__ = ["build_completion_service", "create_app", "lifespan"]
