"""Exceptions raised at the language service seams."""


class LanguageServiceError(Exception):
    """Base exception for language service failures."""


class TransportError(LanguageServiceError):
    """Raised by a backend when the service could not be reached."""


class ResponseParseError(LanguageServiceError, ValueError):
    """Raised when generated text does not contain the expected JSON value."""
