"""Intent handlers and the dispatcher that picks one per request."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from taskbuster.config import Settings, settings
from taskbuster.errors import InternalError, TransportError, UpstreamError
from taskbuster.intent.catalog import (
    ANALYZE,
    CREATE_CHART,
    EMAIL,
    EXTRACT,
    SUMMARIZE,
)
from taskbuster.intent.remote import parse_classification
from taskbuster.logging import get_logger

logger = get_logger(__name__)

EXTRACT_LABELS = ("important information", "key details", "main points")
SENTIMENT_LABELS = ("positive", "negative", "neutral")

EMAIL_NEEDS_FILE = "Please upload a file to email"
EMAIL_SENT = "Email sent successfully"
CHART_NOT_AVAILABLE = "Chart creation feature coming soon"


class Summarizer(Protocol):
    async def summarize(self, text: str, max_length: int | None = None) -> str: ...


class TextClassifier(Protocol):
    async def zero_shot(
        self, text: str, candidate_labels: Sequence[str], multi_label: bool = False
    ) -> Any: ...


class Mailer(Protocol):
    async def send(self, to: str, subject: str, body: str) -> None: ...


@dataclass
class TaskInput:
    description: str
    text: str
    has_document: bool


Handler = Callable[[TaskInput], Awaitable[str]]


class TaskDispatcher:
    """Maps each catalog intent to exactly one handler."""

    def __init__(
        self,
        summarizer: Summarizer,
        classifier: TextClassifier,
        mailer: Mailer,
        config: Settings | None = None,
    ) -> None:
        self.summarizer = summarizer
        self.classifier = classifier
        self.mailer = mailer
        self.config = config or settings
        self.handlers: dict[str, Handler] = {
            SUMMARIZE: self.summarize,
            EXTRACT: self.extract,
            EMAIL: self.email,
            CREATE_CHART: self.create_chart,
            ANALYZE: self.analyze,
        }

    @property
    def intents(self) -> tuple[str, ...]:
        return tuple(self.handlers)

    async def dispatch(self, intent: str, task: TaskInput) -> str:
        handler = self.handlers.get(intent)
        if handler is None:
            raise InternalError(f"No handler registered for intent {intent!r}")
        try:
            return await handler(task)
        except TransportError as exc:
            logger.error(f"Handler {intent} failed upstream: {exc}")
            raise UpstreamError(intent, exc) from exc

    async def _bounded(self, call: Awaitable[Any], what: str) -> Any:
        """Await one inference call under a total deadline."""
        timeout = self.config.INFERENCE_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError as exc:
            logger.error(f"{what} did not finish within {timeout}s")
            raise TransportError("inference", f"{what} timed out") from exc

    async def _summary_of(self, text: str) -> str:
        return await self._bounded(
            self.summarizer.summarize(text, max_length=self.config.SUMMARY_MAX_LENGTH),
            "summarization",
        )

    async def _labels_for(self, text: str, labels: Sequence[str]) -> list[str]:
        payload = await self._bounded(
            self.classifier.zero_shot(text, labels), "text classification"
        )
        result = parse_classification(payload)
        if result.empty:
            raise TransportError("inference", "text classification returned no labels")
        return list(result.labels)

    async def summarize(self, task: TaskInput) -> str:
        return await self._summary_of(task.text)

    async def extract(self, task: TaskInput) -> str:
        return ", ".join(await self._labels_for(task.text, EXTRACT_LABELS))

    async def email(self, task: TaskInput) -> str:
        if not task.has_document:
            return EMAIL_NEEDS_FILE
        recipient = self.config.email_recipient
        if not recipient:
            raise TransportError("mail", "no recipient configured")
        summary = await self._summary_of(task.text)
        await self.mailer.send(recipient, self.config.EMAIL_SUBJECT, summary)
        return EMAIL_SENT

    async def create_chart(self, task: TaskInput) -> str:
        # Rendering is not implemented; callers get a fixed notice.
        return CHART_NOT_AVAILABLE

    async def analyze(self, task: TaskInput) -> str:
        labels = await self._labels_for(task.text, SENTIMENT_LABELS)
        return f"Analysis: {', '.join(labels)}"
