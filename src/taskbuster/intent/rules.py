from __future__ import annotations

from collections.abc import Mapping

from .catalog import DEFAULT_CATALOG


def _normalize_text(value: str) -> str:
    return (value or "").lower()


def keyword_scores(
    description: str, catalog: Mapping[str, tuple[str, ...]] = DEFAULT_CATALOG
) -> dict[str, int]:
    """Number of each intent's phrases found in the description, in catalog order."""
    text = _normalize_text(description)
    return {
        intent: sum(1 for phrase in phrases if phrase.lower() in text)
        for intent, phrases in catalog.items()
    }


def best_keyword_intent(
    description: str, catalog: Mapping[str, tuple[str, ...]] = DEFAULT_CATALOG
) -> tuple[str, int] | None:
    best: tuple[str, int] | None = None
    for intent, count in keyword_scores(description, catalog).items():
        # strict comparison keeps the earliest intent on ties
        if count > 0 and (best is None or count > best[1]):
            best = (intent, count)
    return best
