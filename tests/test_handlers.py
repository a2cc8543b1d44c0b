import asyncio

import pytest
from conftest import FakeInference, FakeMailer

from taskbuster.config import Settings
from taskbuster.errors import InternalError, UpstreamError
from taskbuster.tasks.handlers import (
    CHART_NOT_AVAILABLE,
    EMAIL_NEEDS_FILE,
    EMAIL_SENT,
    TaskDispatcher,
    TaskInput,
)

DOC = TaskInput(description="do it", text="Body of the report.", has_document=True)
NO_DOC = TaskInput(description="do it", text="No file provided.", has_document=False)


def _dispatch(dispatcher: TaskDispatcher, intent: str, task: TaskInput) -> str:
    return asyncio.run(dispatcher.dispatch(intent, task))


@pytest.fixture
def dispatcher(
    inference: FakeInference, mailer: FakeMailer, test_settings: Settings
) -> TaskDispatcher:
    return TaskDispatcher(inference, inference, mailer, config=test_settings)


def test_every_intent_has_a_handler(dispatcher: TaskDispatcher) -> None:
    assert dispatcher.intents == (
        "summarize",
        "extract",
        "email",
        "create_chart",
        "analyze",
    )


def test_summarize_returns_summary_verbatim(
    dispatcher: TaskDispatcher, inference: FakeInference
) -> None:
    assert _dispatch(dispatcher, "summarize", DOC) == "A short summary."
    assert inference.summarize_calls == [("Body of the report.", 100)]


def test_extract_joins_labels(dispatcher: TaskDispatcher, inference: FakeInference) -> None:
    result = _dispatch(dispatcher, "extract", DOC)

    assert result == "important information, key details, main points"
    assert inference.zero_shot_calls[0][1] == (
        "important information",
        "key details",
        "main points",
    )


def test_analyze_prefixes_labels(dispatcher: TaskDispatcher) -> None:
    assert _dispatch(dispatcher, "analyze", DOC) == "Analysis: positive, negative, neutral"


def test_chart_is_a_stub(dispatcher: TaskDispatcher, inference: FakeInference) -> None:
    assert _dispatch(dispatcher, "create_chart", DOC) == CHART_NOT_AVAILABLE
    assert inference.summarize_calls == [] and inference.zero_shot_calls == []


def test_email_without_document_makes_no_calls(
    dispatcher: TaskDispatcher, inference: FakeInference, mailer: FakeMailer
) -> None:
    assert _dispatch(dispatcher, "email", NO_DOC) == EMAIL_NEEDS_FILE
    assert mailer.sent == []
    assert inference.summarize_calls == []


def test_email_sends_summary_to_recipient(
    dispatcher: TaskDispatcher, mailer: FakeMailer
) -> None:
    assert _dispatch(dispatcher, "email", DOC) == EMAIL_SENT
    assert mailer.sent == [("owner@example.com", "TaskBuster Summary", "A short summary.")]


def test_repeated_email_requests_send_repeatedly(
    dispatcher: TaskDispatcher, mailer: FakeMailer
) -> None:
    _dispatch(dispatcher, "email", DOC)
    _dispatch(dispatcher, "email", DOC)

    assert len(mailer.sent) == 2


def test_mail_failure_is_not_reported_as_success(
    inference: FakeInference, test_settings: Settings
) -> None:
    dispatcher = TaskDispatcher(
        inference, inference, FakeMailer(fail=True), config=test_settings
    )

    with pytest.raises(UpstreamError) as excinfo:
        _dispatch(dispatcher, "email", DOC)

    assert excinfo.value.intent == "email"
    assert excinfo.value.cause.service == "mail"


@pytest.mark.parametrize("intent", ["summarize", "extract", "analyze", "email"])
def test_upstream_failures_are_wrapped(
    intent: str, mailer: FakeMailer, test_settings: Settings
) -> None:
    broken = FakeInference(fail=True)
    dispatcher = TaskDispatcher(broken, broken, mailer, config=test_settings)

    with pytest.raises(UpstreamError):
        _dispatch(dispatcher, intent, DOC)
    assert mailer.sent == []


def test_empty_classification_is_an_upstream_error(
    mailer: FakeMailer, test_settings: Settings
) -> None:
    class Silent(FakeInference):
        async def zero_shot(self, text, candidate_labels, multi_label=False):
            return {"error": "Model is currently loading"}

    silent = Silent()
    dispatcher = TaskDispatcher(silent, silent, mailer, config=test_settings)

    with pytest.raises(UpstreamError):
        _dispatch(dispatcher, "analyze", DOC)


def test_unregistered_intent_is_a_programming_error(dispatcher: TaskDispatcher) -> None:
    with pytest.raises(InternalError):
        _dispatch(dispatcher, "translate", DOC)


@pytest.mark.parametrize("intent", ["summarize", "extract", "analyze"])
def test_slow_inference_is_cut_off(
    intent: str, mailer: FakeMailer, test_settings: Settings
) -> None:
    class Trickling(FakeInference):
        async def summarize(self, text, max_length=None):
            await asyncio.sleep(5)
            return "too late"

        async def zero_shot(self, text, candidate_labels, multi_label=False):
            await asyncio.sleep(5)
            return {"labels": list(candidate_labels), "scores": [0.5] * len(candidate_labels)}

    slow = Trickling()
    config = test_settings.model_copy(update={"INFERENCE_TIMEOUT_SECONDS": 0.05})
    dispatcher = TaskDispatcher(slow, slow, mailer, config=config)

    with pytest.raises(UpstreamError) as excinfo:
        _dispatch(dispatcher, intent, DOC)

    assert excinfo.value.cause.service == "inference"
    assert "timed out" in excinfo.value.cause.detail
