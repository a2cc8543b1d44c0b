"""The closed set of intents and the phrases that describe them.

One ordered table feeds both the remote classifier's candidate labels and the
keyword fallback, so the two can never disagree on what exists. Iteration
order is the tie-break order for keyword scoring.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

SUMMARIZE = "summarize"
EXTRACT = "extract"
EMAIL = "email"
CREATE_CHART = "create_chart"
ANALYZE = "analyze"


class IntentCatalog(Mapping[str, tuple[str, ...]]):
    def __init__(self, phrases: Mapping[str, tuple[str, ...]]) -> None:
        if not phrases:
            raise ValueError("catalog needs at least one intent")
        table: dict[str, tuple[str, ...]] = {}
        for name, examples in phrases.items():
            cleaned = tuple(p.strip().lower() for p in examples if p and p.strip())
            if not cleaned:
                raise ValueError(f"intent {name!r} has no representative phrases")
            table[name] = cleaned
        self._table = MappingProxyType(table)

    def __getitem__(self, name: str) -> tuple[str, ...]:
        return self._table[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._table)


DEFAULT_CATALOG = IntentCatalog(
    {
        SUMMARIZE: (
            "summarize",
            "summary",
            "create a summary",
            "summarize this text",
            "give me a summary",
            "provide key points",
            "brief overview",
        ),
        EXTRACT: (
            "extract",
            "extract data",
            "pull out information",
            "find key details",
            "get data points",
            "extract important information",
        ),
        EMAIL: (
            "email",
            "send an email",
            "email this content",
            "forward via email",
            "share through email",
            "mail this information",
        ),
        CREATE_CHART: (
            "chart",
            "graph",
            "create a visualization",
            "make a chart",
            "plot this data",
            "visualize information",
            "generate a graph",
        ),
        ANALYZE: (
            "analyze",
            "sentiment",
            "analyze this text",
            "provide analysis",
            "evaluate content",
            "assess this information",
        ),
    }
)
