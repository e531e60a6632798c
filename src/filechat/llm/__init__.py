"""Language service access: retrying client, backend, and response parsing."""

from .client import LanguageService, RetryingClient
from .errors import LanguageServiceError, ResponseParseError, TransportError
from .models import (
    GenerationRequest,
    ServiceError,
    ServiceErrorKind,
    ServiceResponse,
    StructuredResult,
)
from .parsing import extract_json_array, extract_json_object

__all__ = [
    "LanguageService",
    "RetryingClient",
    "LanguageServiceError",
    "ResponseParseError",
    "TransportError",
    "GenerationRequest",
    "ServiceError",
    "ServiceErrorKind",
    "ServiceResponse",
    "StructuredResult",
    "extract_json_array",
    "extract_json_object",
]
