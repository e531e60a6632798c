"""Organization planning and execution."""

from .executor import ActionExecutor
from .models import (
    ActionResult,
    CollectResult,
    FileAction,
    Suggestion,
    SuggestionPlan,
    SuggestionResult,
)
from .planner import SuggestionPlanner, sanitize_name, to_actions

__all__ = [
    "ActionExecutor",
    "ActionResult",
    "CollectResult",
    "FileAction",
    "Suggestion",
    "SuggestionPlan",
    "SuggestionResult",
    "SuggestionPlanner",
    "sanitize_name",
    "to_actions",
]
