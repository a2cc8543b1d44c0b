"""Error taxonomy shared by the pipeline and the HTTP layer."""

from __future__ import annotations

from collections.abc import Sequence


class TaskBusterError(Exception):
    """Base class for every failure the pipeline knows how to report."""


class ValidationError(TaskBusterError):
    """The request or its attachment violates an input constraint."""


class UnsupportedMediaType(ValidationError):
    pass


class PayloadTooLarge(ValidationError):
    pass


class ResolutionUnknown(TaskBusterError):
    """Neither the classifier nor the keyword table produced an intent."""

    def __init__(self, supported: Sequence[str]) -> None:
        self.supported = tuple(supported)
        super().__init__(
            f"Intent not recognized. Supported actions: {', '.join(self.supported)}"
        )


class TransportError(TaskBusterError):
    """A remote call failed, timed out, or answered with an error status."""

    def __init__(self, service: str, detail: str) -> None:
        self.service = service
        self.detail = detail
        super().__init__(f"{service}: {detail}")


class UpstreamError(TaskBusterError):
    """A task handler could not complete because a collaborator failed."""

    def __init__(self, intent: str, cause: TransportError) -> None:
        self.intent = intent
        self.cause = cause
        super().__init__(f"{intent} handler failed: {cause}")


class InternalError(TaskBusterError):
    """A programming fault, such as an intent with no registered handler."""
