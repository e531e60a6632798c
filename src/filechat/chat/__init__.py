"""Chat entry point tying search, sessions, and execution together."""

from .models import ChatResponse, ResponseKind
from .router import ChatRouter

__all__ = ["ChatResponse", "ChatRouter", "ResponseKind"]
