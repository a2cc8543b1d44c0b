"""FastAPI application factory."""

from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taskbuster.api.ratelimit import (
    FixedWindowRateLimiter,
    RateLimitExceeded,
    RateLimitInfo,
)
from taskbuster.config import Settings, settings
from taskbuster.envelope import INTERNAL_MESSAGE, ErrorBody, TaskResult
from taskbuster.logging import get_logger
from taskbuster.pipeline import TaskPipeline, build_pipeline

logger = get_logger(__name__)

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str
    intents: list[str]


def _pipeline(app: FastAPI) -> TaskPipeline:
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is None:
        raise RuntimeError("Task pipeline not initialized")
    return pipeline


def _configure_startup_event(app: FastAPI, config: Settings) -> None:
    @app.on_event("startup")
    async def startup_event() -> None:
        if getattr(app.state, "pipeline", None) is not None:
            return
        logger.info("Starting up TaskBuster API")
        try:
            app.state.pipeline = build_pipeline(config)
        except Exception as e:
            logger.error(f"Failed to initialize pipeline: {e}")
            raise
        logger.info("Pipeline initialization completed")


def _configure_shutdown_event(app: FastAPI) -> None:
    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        logger.info("Shutting down TaskBuster API")
        pipeline = getattr(app.state, "pipeline", None)
        if pipeline is not None:
            await pipeline.aclose()


def _configure_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content=ErrorBody(error=str(exc)).model_dump(exclude_none=True),
            headers={"Retry-After": str(exc.info.retry_after)},
        )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content=ErrorBody(error="Malformed request body").model_dump(
                exclude_none=True
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error("Unhandled error")
        return JSONResponse(status_code=500, content={"error": INTERNAL_MESSAGE})


def _configure_health_endpoint(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        pipeline = getattr(app.state, "pipeline", None)
        return HealthResponse(
            status="healthy" if pipeline is not None else "unhealthy",
            version=VERSION,
            intents=list(pipeline.supported_intents) if pipeline is not None else [],
        )


def _configure_task_endpoint(app: FastAPI, limiter: FixedWindowRateLimiter) -> None:
    @app.post(
        "/api/task",
        response_model=TaskResult,
        responses={400: {"model": ErrorBody}, 429: {"model": ErrorBody}, 500: {"model": ErrorBody}},
    )
    async def run_task(
        task: Optional[str] = Form(None),
        file: Optional[UploadFile] = File(None),
        _: RateLimitInfo = Depends(limiter),
    ) -> JSONResponse:
        if file is not None and not file.filename:
            # browsers send an empty part when no file was picked
            file = None
        envelope = await _pipeline(app).run(task, file)
        return JSONResponse(
            status_code=envelope.status_code, content=envelope.to_dict()
        )


def create_app(
    pipeline: Optional[TaskPipeline] = None,
    config: Optional[Settings] = None,
    limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        pipeline: Pre-built pipeline; built from settings at startup when omitted
        config: Settings to use instead of the process-wide instance
        limiter: Rate limiter for the task endpoint

    Returns:
        Configured FastAPI application
    """
    config = config or settings
    app = FastAPI(
        title="TaskBuster",
        description="Routes free-text task requests to summarize, extract, "
        "email, chart and analyze actions",
        version=VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.CLIENT_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.pipeline = pipeline
    limiter = limiter or FixedWindowRateLimiter(
        config.RATE_LIMIT_REQUESTS,
        config.RATE_LIMIT_WINDOW_SECONDS,
        trust_proxy=config.TRUST_PROXY,
    )
    app.state.limiter = limiter

    _configure_startup_event(app, config)
    _configure_shutdown_event(app)
    _configure_error_handlers(app)
    _configure_health_endpoint(app)
    _configure_task_endpoint(app, limiter)

    return app
