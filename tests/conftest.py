"""Pytest configuration file."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskbuster.api.app import create_app
from taskbuster.api.ratelimit import FixedWindowRateLimiter
from taskbuster.config import Settings
from taskbuster.documents.loader import DocumentLoader
from taskbuster.errors import TransportError
from taskbuster.intent.resolver import IntentResolver
from taskbuster.intent.types import ClassificationResult
from taskbuster.pipeline import TaskPipeline
from taskbuster.tasks.handlers import TaskDispatcher


class FakeClassifier:
    """Stands in for the remote zero-shot intent classifier."""

    def __init__(
        self,
        result: Optional[ClassificationResult] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.result = result or ClassificationResult()
        self.error = error
        self.calls: list[tuple[str, tuple[str, ...]]] = []

    async def classify(
        self, description: str, candidate_labels: Sequence[str]
    ) -> ClassificationResult:
        self.calls.append((description, tuple(candidate_labels)))
        if self.error is not None:
            raise self.error
        return self.result


class FakeInference:
    """Summarizer + text classifier double with call counters."""

    def __init__(self, summary: str = "A short summary.", fail: bool = False) -> None:
        self.summary = summary
        self.fail = fail
        self.summarize_calls: list[tuple[str, Optional[int]]] = []
        self.zero_shot_calls: list[tuple[str, tuple[str, ...]]] = []

    async def summarize(self, text: str, max_length: Optional[int] = None) -> str:
        self.summarize_calls.append((text, max_length))
        if self.fail:
            raise TransportError("inference", "facebook/bart-large-cnn answered 503")
        return self.summary

    async def zero_shot(
        self, text: str, candidate_labels: Sequence[str], multi_label: bool = False
    ) -> Any:
        self.zero_shot_calls.append((text, tuple(candidate_labels)))
        if self.fail:
            raise TransportError("inference", "facebook/bart-large-mnli answered 503")
        labels = list(candidate_labels)
        scores = [round(1.0 / (i + 2), 3) for i in range(len(labels))]
        return {"sequence": text, "labels": labels, "scores": scores}


class FakeMailer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise TransportError("mail", "message could not be sent")
        self.sent.append((to, subject, body))


class FakeUpload:
    """Minimal stand-in for FastAPI's UploadFile."""

    def __init__(
        self,
        data: bytes,
        content_type: Optional[str] = "text/plain",
        filename: str = "notes.txt",
    ) -> None:
        self.data = data
        self.content_type = content_type
        self.filename = filename
        self._offset = 0

    async def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = len(self.data) - self._offset
        chunk = self.data[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        HF_API_TOKEN="hf_test",
        GMAIL_USER="bot@example.com",
        GMAIL_PASSWORD="app-password",
        EMAIL_RECIPIENT="owner@example.com",
    )


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def inference() -> FakeInference:
    return FakeInference()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def pipeline(
    classifier: FakeClassifier,
    inference: FakeInference,
    mailer: FakeMailer,
    upload_dir: Path,
    test_settings: Settings,
) -> TaskPipeline:
    return TaskPipeline(
        resolver=IntentResolver(classifier, threshold=0.35, timeout=1.0),
        loader=DocumentLoader(max_bytes=5 * 1024 * 1024, upload_dir=str(upload_dir)),
        dispatcher=TaskDispatcher(inference, inference, mailer, config=test_settings),
        max_task_chars=500,
    )


@pytest.fixture
def app(pipeline: TaskPipeline, test_settings: Settings) -> FastAPI:
    """Create a test FastAPI application."""
    return create_app(
        pipeline=pipeline,
        config=test_settings,
        limiter=FixedWindowRateLimiter(limit=100, window_seconds=900),
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create a test client."""
    return TestClient(app)
