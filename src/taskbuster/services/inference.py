"""Async client for the Hugging Face Inference API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from taskbuster.config import Settings, settings
from taskbuster.errors import TransportError
from taskbuster.logging import get_logger

logger = get_logger(__name__)

_SERVICE = "inference"


class InferenceClient:
    """Thin async wrapper over the hosted inference endpoints.

    Every failure mode (connection error, timeout, non-2xx status, body that is
    not JSON) surfaces as :class:`TransportError`. Nothing is retried.
    """

    def __init__(
        self,
        config: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or settings
        headers = {"accept": "application/json"}
        if self.config.HF_API_TOKEN:
            headers["Authorization"] = f"Bearer {self.config.HF_API_TOKEN}"
        self._client = client or httpx.AsyncClient(
            base_url=self.config.HF_API_URL.rstrip("/") + "/",
            headers=headers,
            timeout=self.config.INFERENCE_TIMEOUT_SECONDS,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, model: str, payload: dict[str, Any]) -> Any:
        try:
            resp = await self._client.post(model, json=payload)
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException as exc:
            logger.error(f"Inference call to {model} timed out: {exc!r}")
            raise TransportError(_SERVICE, f"timeout calling {model}") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                f"Inference call to {model} returned {exc.response.status_code}: "
                f"{exc.response.text[:500]}"
            )
            raise TransportError(
                _SERVICE, f"{model} answered {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(f"Inference call to {model} failed: {exc!r}")
            raise TransportError(_SERVICE, f"request to {model} failed") from exc
        except ValueError as exc:
            logger.error(f"Inference call to {model} returned non-JSON body")
            raise TransportError(_SERVICE, f"{model} returned invalid JSON") from exc

    async def zero_shot(
        self,
        text: str,
        candidate_labels: Sequence[str],
        multi_label: bool = False,
        model: str | None = None,
    ) -> Any:
        """Raw zero-shot classification payload; parsing is left to the caller."""
        return await self._post(
            model or self.config.CLASSIFIER_MODEL,
            {
                "inputs": text,
                "parameters": {
                    "candidate_labels": list(candidate_labels),
                    "multi_label": multi_label,
                },
            },
        )

    async def summarize(self, text: str, max_length: int | None = None) -> str:
        model = self.config.SUMMARIZER_MODEL
        data = await self._post(
            model,
            {
                "inputs": text,
                "parameters": {
                    "max_length": max_length or self.config.SUMMARY_MAX_LENGTH
                },
            },
        )
        if isinstance(data, list) and data:
            data = data[0]
        if isinstance(data, dict) and isinstance(data.get("summary_text"), str):
            return data["summary_text"]
        logger.error(f"Unexpected summarization payload from {model}: {data!r}")
        raise TransportError(_SERVICE, f"{model} returned an unexpected payload")
