"""Intent classification for chat routing and session replies."""

from .engine import (
    FALLBACK_REPLY,
    ChatIntentClassifier,
    SessionIntentClassifier,
    clean_value,
    contains_phrase,
)
from .models import ChatContext, ChatIntent, SessionIntent

__all__ = [
    "FALLBACK_REPLY",
    "ChatIntentClassifier",
    "SessionIntentClassifier",
    "ChatContext",
    "ChatIntent",
    "SessionIntent",
    "clean_value",
    "contains_phrase",
]
