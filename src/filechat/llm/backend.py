"""DSPy-backed implementation of the language service boundary."""

from __future__ import annotations

import logging
from typing import Any

import dspy
import litellm

from filechat.config.models import LLMSettings

from .errors import TransportError
from .models import GenerationRequest, ServiceErrorKind, ServiceResponse

LOGGER = logging.getLogger(__name__)

_NOISY_LOGGERS = ("LiteLLM", "litellm", "dspy", "httpx")


def configure_dspy_logging(level: int = logging.WARNING) -> None:
    """Cap third-party logger verbosity so chat output stays readable."""
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)


class DSPyLanguageService:
    """Send prompts through ``dspy.LM`` and translate provider failures."""

    def __init__(self, settings: LLMSettings | None = None) -> None:
        self._settings = settings or LLMSettings()
        configure_dspy_logging()
        self._lm = dspy.LM(**lm_kwargs(self._settings))

    def generate(self, request: GenerationRequest) -> ServiceResponse:
        """Run one completion.

        Raises:
            TransportError: If the provider could not be reached.
        """
        max_tokens = request.max_tokens or self._settings.max_tokens
        try:
            outputs = self._lm(
                request.prompt,
                temperature=request.temperature,
                max_tokens=max_tokens,
            )
        except litellm.RateLimitError as exc:
            return ServiceResponse.failure(ServiceErrorKind.RATE_LIMITED, str(exc))
        except (litellm.APIConnectionError, litellm.Timeout) as exc:
            raise TransportError(str(exc)) from exc
        except Exception as exc:  # pragma: no cover - provider specific failures
            LOGGER.debug("Language model call failed: %s", exc)
            return ServiceResponse.failure(ServiceErrorKind.SERVICE, str(exc))

        text = _first_text(outputs)
        if text is None:
            return ServiceResponse.failure(ServiceErrorKind.SERVICE, "Empty completion.")
        return ServiceResponse(text=text)


def model_name(settings: LLMSettings) -> str:
    """Return the LiteLLM model identifier, prefixed with the provider when missing."""
    model = settings.model.strip()
    provider = settings.provider.strip()
    if not provider or "/" in model:
        return model
    return f"{provider}/{model}"


def lm_kwargs(settings: LLMSettings) -> dict[str, Any]:
    """Build the keyword arguments for ``dspy.LM`` from ``settings``."""
    kwargs: dict[str, Any] = {
        "model": model_name(settings),
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "cache": False,
        "num_retries": 0,
    }
    if settings.api_base_url:
        kwargs["api_base"] = settings.api_base_url
    if settings.api_key is not None:
        kwargs["api_key"] = settings.api_key
    return kwargs


def _first_text(outputs: Any) -> str | None:
    if not outputs:
        return None
    first = outputs[0]
    if isinstance(first, dict):
        first = first.get("text")
    if not isinstance(first, str):
        return None
    return first


__all__ = ["DSPyLanguageService", "configure_dspy_logging", "lm_kwargs", "model_name"]
