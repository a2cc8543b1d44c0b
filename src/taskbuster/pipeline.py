"""Request pipeline: validate, stage upload, resolve, extract, dispatch."""

from __future__ import annotations

from dataclasses import dataclass

from taskbuster.config import Settings, settings
from taskbuster.documents.loader import DocumentLoader, Upload
from taskbuster.envelope import Envelope, from_exception, success
from taskbuster.errors import ResolutionUnknown, ValidationError
from taskbuster.intent.remote import RemoteIntentClassifier
from taskbuster.intent.resolver import IntentResolver
from taskbuster.intent.types import Known, Unknown
from taskbuster.logging import get_logger
from taskbuster.services.inference import InferenceClient
from taskbuster.services.mailer import SmtpMailer
from taskbuster.tasks.handlers import TaskDispatcher, TaskInput
from taskbuster.utils.timing import StageTimer

logger = get_logger(__name__)


@dataclass
class TaskOutcome:
    intent: Known
    result: str


class TaskPipeline:
    def __init__(
        self,
        resolver: IntentResolver,
        loader: DocumentLoader,
        dispatcher: TaskDispatcher,
        max_task_chars: int | None = None,
        inference: InferenceClient | None = None,
    ) -> None:
        self.resolver = resolver
        self.inference = inference
        self.loader = loader
        self.dispatcher = dispatcher
        self.max_task_chars = (
            settings.MAX_TASK_CHARS if max_task_chars is None else max_task_chars
        )

    async def aclose(self) -> None:
        if self.inference is not None:
            await self.inference.aclose()

    @property
    def supported_intents(self) -> tuple[str, ...]:
        return self.resolver.catalog.names

    def validate_description(self, description: str | None) -> str:
        text = (description or "").strip()
        if not text:
            logger.warning("Request received without task")
            raise ValidationError("Task is required")
        if len(text) > self.max_task_chars:
            raise ValidationError(
                "Task description too long. "
                f"Maximum {self.max_task_chars} characters allowed."
            )
        return text

    async def execute(
        self, description: str | None, upload: Upload | None = None
    ) -> TaskOutcome:
        """Run one request, raising the taxonomy errors on failure."""
        text = self.validate_description(description)
        timer = StageTimer()
        try:
            async with self.loader.stage(upload) as document:
                with timer.stage("resolve"):
                    resolved = await self.resolver.resolve(text)
                if isinstance(resolved, Unknown):
                    logger.warning(
                        f"Unknown intent detected ({resolved.reason}) for task: {text!r}"
                    )
                    raise ResolutionUnknown(self.supported_intents)
                logger.info(f"Detected intent: {resolved.name} via {resolved.source}")

                with timer.stage("extract"):
                    content = await document.read_text()
                with timer.stage("dispatch"):
                    result = await self.dispatcher.dispatch(
                        resolved.name,
                        TaskInput(
                            description=text,
                            text=content,
                            has_document=document.provided,
                        ),
                    )
        finally:
            logger.debug(f"Stage timings: {timer.summary()}")

        logger.info(f"Task completed successfully: intent={resolved.name}")
        return TaskOutcome(intent=resolved, result=result)

    async def run(
        self, description: str | None, upload: Upload | None = None
    ) -> Envelope:
        """Run one request and always answer with exactly one envelope."""
        try:
            outcome = await self.execute(description, upload)
        except Exception as exc:
            return from_exception(exc)
        return success(outcome.result, outcome.intent.name)


def build_pipeline(config: Settings | None = None) -> TaskPipeline:
    """Wire the production collaborators from settings.

    Raises:
        RuntimeError: if a required credential is missing
    """
    config = config or settings
    config.require_credentials()
    inference = InferenceClient(config)
    resolver = IntentResolver(
        RemoteIntentClassifier(inference),
        threshold=config.CONFIDENCE_THRESHOLD,
        timeout=config.INFERENCE_TIMEOUT_SECONDS,
    )
    dispatcher = TaskDispatcher(
        summarizer=inference,
        classifier=inference,
        mailer=SmtpMailer(config),
        config=config,
    )
    return TaskPipeline(
        resolver=resolver,
        loader=DocumentLoader(config=config),
        dispatcher=dispatcher,
        max_task_chars=config.MAX_TASK_CHARS,
        inference=inference,
    )
