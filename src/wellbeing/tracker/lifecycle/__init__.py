"""Challenge lifecycle module.

Provides the status transition table and the auto-complete /
auto-abandon rules.
"""

from .governor import (
    ALLOWED_TRANSITIONS,
    DEFAULT_INACTIVITY_THRESHOLD_DAYS,
    LifecycleGovernor,
    TransitionDecision,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "DEFAULT_INACTIVITY_THRESHOLD_DAYS",
    "LifecycleGovernor",
    "TransitionDecision",
]
