"""Per-request stage timing."""

import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Dict


class StageTimer:
    """Records how long each pipeline stage of one request took."""

    def __init__(self) -> None:
        self._times: Dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """
        Time a pipeline stage, recording it even when the stage raises.

        Args:
            name: Stage name (e.g. "resolve", "dispatch")
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            self._times[name] = (time.perf_counter() - start) * 1000

    def get_times(self) -> Dict[str, float]:
        """Elapsed milliseconds per stage, in the order stages finished."""
        return self._times.copy()

    def summary(self) -> str:
        return " ".join(f"{name}={ms:.1f}ms" for name, ms in self._times.items())
