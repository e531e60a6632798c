"""Request and response types exchanged with the language service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ServiceErrorKind(str, Enum):
    """Failure categories reported by the language service boundary."""

    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    SERVICE = "service"
    MALFORMED = "malformed"
    MAX_RETRIES = "max_retries"


class GenerationRequest(BaseModel):
    """A single text-generation request.

    Attributes:
        prompt: Free-text prompt sent to the service.
        temperature: Sampling temperature.
        max_tokens: Optional ceiling on generated tokens.
    """

    prompt: str
    temperature: float = 0.1
    max_tokens: Optional[int] = None


class ServiceError(BaseModel):
    """Structured error returned instead of generated text."""

    kind: ServiceErrorKind
    message: str = ""


class ServiceResponse(BaseModel):
    """Generated text or a structured error, never both."""

    text: Optional[str] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, kind: ServiceErrorKind, message: str = "") -> "ServiceResponse":
        return cls(error=ServiceError(kind=kind, message=message))


@dataclass(slots=True)
class StructuredResult(Generic[T]):
    """Typed value parsed from a service response, or the error that prevented it."""

    value: Optional[T] = None
    error: Optional[ServiceError] = None
    raw_text: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


__all__ = [
    "ServiceErrorKind",
    "GenerationRequest",
    "ServiceError",
    "ServiceResponse",
    "StructuredResult",
]
