"""Progress accounting module.

Provides functionality for:
- Counting expected and completed periods of a challenge
- Completion percentage and days remaining
- Current and longest streaks of satisfied days
"""

from .accounting import (
    CompletionStrategy,
    ProgressAccounting,
    compute_completion_percentage,
    compute_days_remaining,
    compute_streak,
    compute_total_periods,
    days_between,
    to_date,
)
from .schemas import DerivedMetrics, StreakInfo

__all__ = [
    "CompletionStrategy",
    "ProgressAccounting",
    "compute_completion_percentage",
    "compute_days_remaining",
    "compute_streak",
    "compute_total_periods",
    "days_between",
    "to_date",
    "DerivedMetrics",
    "StreakInfo",
]
