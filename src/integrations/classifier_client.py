"""HTTP client for the remote speech classification endpoint."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from config.settings import get_settings
from conversation.errors import RemoteClassificationError
from conversation.schemas import ClassificationRequest, ClassificationResponse
from conversation.types import ClassificationOutcome

LOGGER = logging.getLogger(__name__)


class RemoteClassifierClient:
    """Posts utterances to the analyze-speech endpoint.

    Every failure mode (transport error, timeout, non-2xx, malformed JSON,
    unknown category) is raised as ``RemoteClassificationError`` so the
    caller can fall back to local keywords.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_s: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Remote classifier endpoint must be configured.")
        self._endpoint = endpoint
        self._timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(cls) -> RemoteClassifierClient | None:
        settings = get_settings()
        if not settings.remote_classifier_enabled:
            return None
        if not settings.remote_classifier_endpoint:
            LOGGER.warning("Remote classifier enabled without an endpoint; using keywords only")
            return None
        return cls(
            settings.remote_classifier_endpoint,
            timeout_s=settings.remote_classifier_timeout_s,
        )

    async def classify(self, text: str) -> ClassificationOutcome:
        try:
            body = ClassificationRequest(text=text).model_dump()
        except ValidationError as exc:
            raise RemoteClassificationError("Utterance rejected before sending") from exc

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                response = await client.post(
                    self._endpoint,
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise RemoteClassificationError(f"Classifier timed out after {self._timeout_s}s") from exc
        except httpx.HTTPStatusError as exc:
            raise RemoteClassificationError(
                f"Classifier returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteClassificationError(f"Classifier unreachable: {exc}") from exc
        except ValueError as exc:
            raise RemoteClassificationError("Classifier returned invalid JSON") from exc

        try:
            verdict = ClassificationResponse.model_validate(payload)
        except ValidationError as exc:
            raise RemoteClassificationError(f"Classifier payload rejected: {exc.error_count()} errors") from exc

        return ClassificationOutcome(
            category=verdict.category,
            summary=verdict.summary.strip() or None,
            source="remote",
        )
