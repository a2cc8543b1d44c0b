from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

IntentSource = Literal["remote", "keyword"]


@dataclass(frozen=True)
class ClassificationResult:
    labels: tuple[str, ...] = ()
    scores: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if len(self.labels) != len(self.scores):
            raise ValueError("labels and scores must have the same length")

    @property
    def empty(self) -> bool:
        return not self.labels

    def top(self) -> tuple[str, float] | None:
        """Highest-scoring label; ties keep the first one in returned order."""
        if self.empty:
            return None
        best_idx = 0
        for idx, score in enumerate(self.scores):
            if score > self.scores[best_idx]:
                best_idx = idx
        return self.labels[best_idx], self.scores[best_idx]


@dataclass(frozen=True)
class Known:
    name: str
    source: IntentSource
    score: float = 0.0  # classifier score or keyword match count


@dataclass(frozen=True)
class Unknown:
    reason: str = "no_candidate"
    details: dict[str, float] = field(default_factory=dict)


ResolvedIntent = Union[Known, Unknown]
