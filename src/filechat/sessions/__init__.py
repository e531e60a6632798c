"""Multi-turn organize and collect conversations."""

from .collect import CollectEffect, CollectSession, CollectState, collect_transition
from .models import CollectRequest, CollectStep, OrganizeStep, SessionReply
from .organize import (
    OrganizeEffect,
    OrganizeSession,
    OrganizeState,
    organize_transition,
    render_plan,
)

__all__ = [
    "CollectEffect",
    "CollectRequest",
    "CollectSession",
    "CollectState",
    "CollectStep",
    "OrganizeEffect",
    "OrganizeSession",
    "OrganizeState",
    "OrganizeStep",
    "SessionReply",
    "collect_transition",
    "organize_transition",
    "render_plan",
]
