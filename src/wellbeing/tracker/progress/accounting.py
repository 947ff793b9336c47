"""Progress accounting for wellness challenges.

Pure functions converting a challenge and its daily progress entries into
derived metrics: expected periods, completed periods, completion
percentage, days remaining and streaks. No I/O and no side effects.

Challenges and entries are duck-typed: a challenge needs ``start_date``,
``end_date``, ``frequency`` and ``target_value``; an entry needs
``entry_date`` and ``value``. Dates may be ``date``, ``datetime`` or ISO
strings.
"""

import math
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from ..db.schemas import Frequency
from .schemas import DerivedMetrics, StreakInfo

DateLike = Union[date, datetime, str]

DAYS_PER_WEEK = 7
DEFAULT_MONTH_LENGTH_DAYS = 30  # Fixed-length month, not calendar aware


class CompletionStrategy(str, Enum):
    """How satisfied entries are turned into completed periods."""

    ENTRIES = "entries"  # Count satisfied daily entries
    PERIODS = "periods"  # Count periods holding at least one satisfied entry


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def days_between(first: DateLike, second: DateLike) -> int:
    """Absolute number of calendar days between two dates."""
    return abs((to_date(first) - to_date(second)).days)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _frequency_value(frequency) -> str:
    return getattr(frequency, "value", frequency)


def compute_streak(
    entries: Sequence,
    target_value: float,
    now: DateLike,
) -> StreakInfo:
    """Calculate the current and longest streak of satisfied days.

    The current streak only counts when the most recent entry is from today
    or yesterday; it then walks backwards one calendar day at a time and
    stops at the first gap or unsatisfied entry. An unsatisfied most recent
    entry does not count but does not break the run before it. The longest
    streak is the best run of consecutive satisfied days anywhere in the
    history.

    Args:
        entries: Progress entries in any order
        target_value: Value an entry must reach to count
        now: Evaluation instant

    Returns:
        StreakInfo with current/longest streak and last completed date
    """
    if not entries:
        return StreakInfo()

    today = to_date(now)
    yesterday = today - timedelta(days=1)
    newest_first = sorted(entries, key=lambda e: to_date(e.entry_date), reverse=True)

    current_streak = 0
    last_completed: Optional[date] = None

    if yesterday <= to_date(newest_first[0].entry_date) <= today:
        previous: Optional[date] = None
        for entry in newest_first:
            entry_day = to_date(entry.entry_date)
            if previous is not None:
                gap = days_between(previous, entry_day)
                if gap == 0:
                    continue
                if gap > 1:
                    break
            if entry.value < target_value:
                if previous is not None:
                    break
                # Partial progress today (or yesterday) keeps the run behind it
                previous = entry_day
                continue
            current_streak += 1
            if last_completed is None:
                last_completed = entry_day
            previous = entry_day

    longest_streak = 0
    run = 0
    previous = None
    for entry in reversed(newest_first):
        entry_day = to_date(entry.entry_date)
        if previous is not None:
            gap = (entry_day - previous).days
            if gap == 0:
                continue
            if gap > 1:
                run = 0
        previous = entry_day
        if entry.value >= target_value:
            run += 1
            longest_streak = max(longest_streak, run)
        else:
            run = 0

    return StreakInfo(
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_completed_date=last_completed,
    )


class ProgressAccounting:
    """Derives progress metrics for challenges."""

    def __init__(
        self,
        month_length_days: int = DEFAULT_MONTH_LENGTH_DAYS,
        completion_strategy: Union[CompletionStrategy, str] = CompletionStrategy.ENTRIES,
    ):
        """Initialize accounting.

        Args:
            month_length_days: Days in one monthly period
            completion_strategy: "entries" (count satisfied entries) or
                "periods" (count satisfied periods)
        """
        if month_length_days < 1:
            raise ValueError("month_length_days must be positive")
        self.month_length_days = month_length_days
        self.completion_strategy = CompletionStrategy(completion_strategy)

    def period_length(self, frequency) -> int:
        """Number of days in one period of the given frequency."""
        value = _frequency_value(frequency)
        if value == Frequency.WEEKLY.value:
            return DAYS_PER_WEEK
        if value == Frequency.MONTHLY.value:
            return self.month_length_days
        return 1

    def total_days(self, challenge) -> int:
        """Inclusive day count of the challenge window, 0 if inverted."""
        start = to_date(challenge.start_date)
        end = to_date(challenge.end_date)
        if start > end:
            return 0
        return (end - start).days + 1

    def total_periods(self, challenge) -> int:
        """Number of periods the challenge expects."""
        days = self.total_days(challenge)
        if days == 0:
            return 0
        return math.ceil(days / self.period_length(challenge.frequency))

    def entries_in_window(self, challenge, entries: Iterable) -> list:
        """Entries dated within the challenge's inclusive window."""
        start = to_date(challenge.start_date)
        end = to_date(challenge.end_date)
        return [e for e in entries if start <= to_date(e.entry_date) <= end]

    def completed_periods(self, challenge, entries: Iterable) -> int:
        """Count completed periods according to the completion strategy."""
        satisfied = [
            e
            for e in self.entries_in_window(challenge, entries)
            if e.value >= challenge.target_value
        ]

        if self.completion_strategy == CompletionStrategy.ENTRIES:
            return len(satisfied)

        start = to_date(challenge.start_date)
        length = self.period_length(challenge.frequency)
        buckets = {(to_date(e.entry_date) - start).days // length for e in satisfied}
        return len(buckets)

    def completion_ratio(self, challenge, entries: Iterable) -> float:
        """Raw completed/total ratio. May exceed 1.0 with the entries strategy."""
        total = self.total_periods(challenge)
        if total == 0:
            return 0.0
        return self.completed_periods(challenge, entries) / total

    def completion_percentage(self, challenge, entries: Iterable) -> int:
        """Completion as an integer percentage between 0 and 100."""
        ratio = self.completion_ratio(challenge, entries)
        return min(100, _round_half_up(ratio * 100))

    def days_remaining(self, challenge, now: DateLike) -> int:
        """Inclusive days left until the end date, 0 once it has passed."""
        today = to_date(now)
        end = to_date(challenge.end_date)
        if today > end:
            return 0
        return (end - today).days + 1

    def streak(self, challenge, entries: Iterable, now: DateLike) -> StreakInfo:
        """Streaks over the entries inside the challenge window."""
        in_window = self.entries_in_window(challenge, entries)
        return compute_streak(in_window, challenge.target_value, now)

    def compute_metrics(self, challenge, entries: Iterable, now: DateLike) -> DerivedMetrics:
        """Compute every derived metric for a challenge at ``now``.

        Args:
            challenge: Challenge definition
            entries: All progress entries of the challenge
            now: Evaluation instant

        Returns:
            DerivedMetrics
        """
        entries = list(entries)
        streak = self.streak(challenge, entries, now)
        last_activity = max((to_date(e.entry_date) for e in entries), default=None)

        return DerivedMetrics(
            total_periods=self.total_periods(challenge),
            completed_periods=self.completed_periods(challenge, entries),
            completion_percentage=self.completion_percentage(challenge, entries),
            days_remaining=self.days_remaining(challenge, now),
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            last_completed_date=streak.last_completed_date,
            last_activity_date=last_activity,
        )


# ----------------------------------------------------------------------------
# Display helpers with default settings
# ----------------------------------------------------------------------------


def compute_total_periods(challenge, month_length_days: int = DEFAULT_MONTH_LENGTH_DAYS) -> int:
    """Number of periods a challenge expects."""
    return ProgressAccounting(month_length_days=month_length_days).total_periods(challenge)


def compute_completion_percentage(
    challenge,
    entries: Iterable,
    month_length_days: int = DEFAULT_MONTH_LENGTH_DAYS,
) -> int:
    """Completion percentage using the entry-count strategy."""
    accounting = ProgressAccounting(month_length_days=month_length_days)
    return accounting.completion_percentage(challenge, entries)


def compute_days_remaining(challenge, now: DateLike) -> int:
    """Inclusive days left in the challenge window."""
    return ProgressAccounting().days_remaining(challenge, now)
