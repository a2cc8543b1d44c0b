from __future__ import annotations

import asyncio

from taskbuster.config import settings
from taskbuster.errors import TransportError
from taskbuster.logging import get_logger

from .catalog import DEFAULT_CATALOG, IntentCatalog
from .remote import IntentClassifier
from .rules import best_keyword_intent
from .types import ClassificationResult, Known, ResolvedIntent, Unknown

logger = get_logger(__name__)


class IntentResolver:
    """Two-stage resolution: trusted remote label first, keyword table second.

    The remote stage is advisory. Any failure there (transport error, timeout,
    malformed payload, label outside the catalog) degrades to the keyword
    stage instead of failing the request.
    """

    def __init__(
        self,
        classifier: IntentClassifier | None,
        catalog: IntentCatalog = DEFAULT_CATALOG,
        threshold: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.classifier = classifier
        self.catalog = catalog
        self.threshold = (
            settings.CONFIDENCE_THRESHOLD if threshold is None else threshold
        )
        self.timeout = settings.INFERENCE_TIMEOUT_SECONDS if timeout is None else timeout

    async def _remote_signal(self, description: str) -> ClassificationResult:
        if self.classifier is None:
            return ClassificationResult()
        try:
            return await asyncio.wait_for(
                self.classifier.classify(description, self.catalog.names),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Classification timed out after {self.timeout:.1f}s")
        except TransportError as exc:
            logger.error(f"Classification error: {exc}")
        except Exception:
            logger.exception("Classification failed unexpectedly")
        return ClassificationResult()

    async def resolve(self, description: str) -> ResolvedIntent:
        classification = await self._remote_signal(description)
        top = classification.top()
        top_score = 0.0
        if top is not None:
            label, top_score = top
            if label not in self.catalog:
                logger.warning(f"Classifier proposed unknown label {label!r}")
            elif top_score > self.threshold:
                logger.info(
                    f"Selected intent through classification: {label} "
                    f"(score={top_score:.3f})"
                )
                return Known(label, "remote", top_score)
            else:
                logger.info(
                    f"Classifier below threshold: {label} "
                    f"({top_score:.3f} <= {self.threshold:.2f})"
                )

        candidate = best_keyword_intent(description, self.catalog)
        if candidate is not None:
            name, count = candidate
            logger.info(f"Selected intent through keywords: {name} (matches={count})")
            return Known(name, "keyword", float(count))

        reason = "no_remote_signal" if top is None else "low_confidence"
        return Unknown(reason=reason, details={"top_score": top_score})
