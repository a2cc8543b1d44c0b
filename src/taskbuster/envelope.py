"""Uniform success/error response shapes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel

from taskbuster.errors import (
    ResolutionUnknown,
    TaskBusterError,
    UpstreamError,
    ValidationError,
)
from taskbuster.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_SUGGESTION = "Try being more specific with your request."
UPSTREAM_MESSAGE = "Failed to process task"
INTERNAL_MESSAGE = "Internal server error"


class TaskResult(BaseModel):
    """Body of a successful task response."""

    result: str
    detectedIntent: str


class ErrorBody(BaseModel):
    """Body of a failed task response."""

    error: str
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class Envelope:
    status_code: int
    body: TaskResult | ErrorBody

    @property
    def ok(self) -> bool:
        return isinstance(self.body, TaskResult)

    def to_dict(self) -> dict[str, Any]:
        return self.body.model_dump(exclude_none=True)


def success(result: str, intent: str) -> Envelope:
    return Envelope(200, TaskResult(result=result, detectedIntent=intent))


def unknown_intent(supported: Sequence[str]) -> Envelope:
    return Envelope(
        400,
        ErrorBody(
            error=str(ResolutionUnknown(supported)),
            suggestion=UNKNOWN_SUGGESTION,
        ),
    )


def from_exception(exc: BaseException) -> Envelope:
    """Map a pipeline failure to its caller-visible envelope.

    Only validation messages are echoed back; upstream and internal failures
    get a fixed message and are logged with full detail instead.
    """
    if isinstance(exc, ValidationError):
        return Envelope(400, ErrorBody(error=str(exc)))
    if isinstance(exc, ResolutionUnknown):
        return unknown_intent(exc.supported)
    if isinstance(exc, UpstreamError):
        logger.error(f"Processing Error: {exc!r} (cause: {exc.cause.detail})")
        return Envelope(500, ErrorBody(error=UPSTREAM_MESSAGE))
    if isinstance(exc, TaskBusterError):
        logger.error(f"Pipeline error: {exc!r}")
    else:
        logger.opt(exception=exc).error("Unhandled error while processing task")
    return Envelope(500, ErrorBody(error=INTERNAL_MESSAGE))
