"""Retrying client wrapped around the language service.

Every component that needs generated text goes through :class:`RetryingClient`
rather than talking to a backend directly, so tests can swap in a scripted
service and a recording ``sleep``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol, TypeVar

from filechat.config.models import RetrySettings

from .errors import ResponseParseError, TransportError
from .models import (
    GenerationRequest,
    ServiceErrorKind,
    ServiceResponse,
    StructuredResult,
)

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class LanguageService(Protocol):
    """Anything that can turn a prompt into text or a structured error."""

    def generate(self, request: GenerationRequest) -> ServiceResponse:
        """Issue one request. May raise :class:`TransportError`."""
        ...


class RetryingClient:
    """Issue language service requests with rate-limit aware backoff."""

    def __init__(
        self,
        service: LanguageService,
        settings: RetrySettings | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._service = service
        self._settings = settings or RetrySettings()
        self._sleep = sleep

    def call(
        self,
        request: GenerationRequest,
        max_attempts: Optional[int] = None,
    ) -> ServiceResponse:
        """Send ``request``, retrying rate-limit and transport failures.

        A rate-limited attempt waits ``(attempt + 1) * rate_limit_backoff_seconds``
        and a transport failure waits ``(attempt + 1) * transport_backoff_seconds``
        before the next attempt. Any other service error is returned at once.

        Args:
            request: Prompt and generation parameters.
            max_attempts: Overrides the configured number of attempts.

        Returns:
            ServiceResponse: Generated text, the first non-retryable error, or a
            ``max_retries`` error once every attempt is spent.
        """
        attempts = max(1, max_attempts or self._settings.max_attempts)
        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = self._service.generate(request)
            except TransportError as exc:
                delay = (attempt + 1) * self._settings.transport_backoff_seconds
                LOGGER.warning(
                    "Language service unreachable (attempt %d/%d): %s", attempt + 1, attempts, exc
                )
                if not last_attempt:
                    self._sleep(delay)
                continue

            if response.error is None:
                return response

            if response.error.kind is ServiceErrorKind.RATE_LIMITED:
                delay = (attempt + 1) * self._settings.rate_limit_backoff_seconds
                LOGGER.warning(
                    "Rate limited by language service (attempt %d/%d); waiting %.1fs.",
                    attempt + 1,
                    attempts,
                    delay,
                )
                if not last_attempt:
                    self._sleep(delay)
                continue

            LOGGER.warning("Language service error: %s", response.error.message)
            return response

        return ServiceResponse.failure(ServiceErrorKind.MAX_RETRIES, "max retries exceeded")

    def call_structured(
        self,
        request: GenerationRequest,
        parser: Callable[[str], T],
        max_attempts: Optional[int] = None,
    ) -> StructuredResult[T]:
        """Send ``request`` and parse the generated text with ``parser``.

        ``parser`` should raise :class:`ResponseParseError` (or ``ValueError``)
        when the text does not hold the expected value; that becomes a
        ``malformed`` error on the result.
        """
        response = self.call(request, max_attempts=max_attempts)
        if response.error is not None:
            return StructuredResult(error=response.error)
        try:
            value = parser(response.text or "")
        except (ResponseParseError, ValueError) as exc:
            LOGGER.info("Discarding unparseable response: %s", exc)
            failure = ServiceResponse.failure(ServiceErrorKind.MALFORMED, str(exc))
            return StructuredResult(error=failure.error, raw_text=response.text)
        return StructuredResult(value=value, raw_text=response.text)


__all__ = ["LanguageService", "RetryingClient"]
