from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, Protocol

from taskbuster.logging import get_logger
from taskbuster.services.inference import InferenceClient

from .types import ClassificationResult

logger = get_logger(__name__)


class IntentClassifier(Protocol):
    async def classify(
        self, description: str, candidate_labels: Sequence[str]
    ) -> ClassificationResult: ...


def _unwrap(payload: Any) -> Any:
    # The API has been seen answering {"0": {...}} and [{...}] for one input.
    if isinstance(payload, dict) and "labels" not in payload and "0" in payload:
        return payload["0"]
    if (
        isinstance(payload, list)
        and len(payload) == 1
        and isinstance(payload[0], dict)
        and "labels" in payload[0]
    ):
        return payload[0]
    return payload


def _from_label_score_list(items: list[Any]) -> ClassificationResult:
    labels: list[str] = []
    scores: list[float] = []
    for item in items:
        if not isinstance(item, dict):
            return ClassificationResult()
        label, score = item.get("label"), _coerce_score(item.get("score"))
        if not isinstance(label, str) or score is None:
            return ClassificationResult()
        labels.append(label)
        scores.append(score)
    return ClassificationResult(tuple(labels), tuple(scores))


def _coerce_score(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    score = float(value)
    if math.isnan(score):
        return None
    return max(0.0, min(1.0, score))


def parse_classification(payload: Any) -> ClassificationResult:
    """Turn a zero-shot response into a result, or an empty one if untrustworthy.

    Never raises: anything that is not parallel ``labels``/``scores`` lists of
    strings and numbers (or a list of ``{label, score}`` records) is no signal.
    """
    data = _unwrap(payload)
    if isinstance(data, list):
        return _from_label_score_list(data)
    if not isinstance(data, dict):
        return ClassificationResult()

    labels, scores = data.get("labels"), data.get("scores")
    if not isinstance(labels, list) or not isinstance(scores, list):
        return ClassificationResult()
    if len(labels) != len(scores):
        return ClassificationResult()

    coerced = [_coerce_score(s) for s in scores]
    if any(s is None for s in coerced) or not all(isinstance(lb, str) for lb in labels):
        return ClassificationResult()
    return ClassificationResult(tuple(labels), tuple(s for s in coerced if s is not None))


class RemoteIntentClassifier:
    """Zero-shot intent classification over the hosted inference API.

    Marshals the request and response only; scores are interpreted by the
    resolver. Transport failures propagate as ``TransportError``.
    """

    def __init__(self, inference: InferenceClient) -> None:
        self.inference = inference

    async def classify(
        self, description: str, candidate_labels: Sequence[str]
    ) -> ClassificationResult:
        payload = await self.inference.zero_shot(
            description, candidate_labels, multi_label=False
        )
        logger.debug(f"Classification response: {payload!r}")
        result = parse_classification(payload)
        if result.empty:
            logger.warning(f"Invalid classification result structure: {payload!r}")
        return result
