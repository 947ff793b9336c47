"""Challenge lifecycle state machine.

Owns the legal manual transitions between ``active``, ``completed`` and
``abandoned`` and decides automatic transitions from elapsed time,
completion and inactivity. Performs no persistence.
"""

import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from ..db.schemas import ChallengeStatus
from ..exceptions import TransitionError
from ..progress.accounting import DateLike, to_date

DEFAULT_INACTIVITY_THRESHOLD_DAYS = 14

ALLOWED_TRANSITIONS: dict[ChallengeStatus, frozenset[ChallengeStatus]] = {
    ChallengeStatus.ACTIVE: frozenset({ChallengeStatus.COMPLETED, ChallengeStatus.ABANDONED}),
    ChallengeStatus.COMPLETED: frozenset({ChallengeStatus.ACTIVE}),  # reopen
    ChallengeStatus.ABANDONED: frozenset({ChallengeStatus.ACTIVE}),  # resume
}

# Decision reasons
AUTO_COMPLETED = "auto_completed"
WINDOW_LAPSED = "window_lapsed"
INACTIVE = "inactive"
NEVER_STARTED = "never_started"


@dataclass(frozen=True)
class TransitionDecision:
    """Result of evaluating the automatic transition rules."""

    new_status: ChallengeStatus
    changed: bool
    reason: Optional[str] = None


def _coerce_status(status) -> ChallengeStatus:
    return status if isinstance(status, ChallengeStatus) else ChallengeStatus(status)


def _idle_days(since: DateLike, now: DateLike) -> int:
    """Days elapsed since ``since``, any started day counting as a whole one.

    With a plain date for ``now`` this is the calendar-day difference. Dates
    given for ``since`` are taken as midnight.
    """
    if not isinstance(now, datetime):
        return (to_date(now) - to_date(since)).days

    if isinstance(since, str) and len(since) > 10:
        since = datetime.fromisoformat(since)
    if isinstance(since, datetime):
        start = since
    else:
        start = datetime.combine(to_date(since), time())

    if start.tzinfo is None and now.tzinfo is not None:
        start = start.replace(tzinfo=now.tzinfo)
    elif start.tzinfo is not None and now.tzinfo is None:
        now = now.replace(tzinfo=start.tzinfo)

    return math.ceil((now - start) / timedelta(days=1))


class LifecycleGovernor:
    """Decides legal and automatic challenge status transitions."""

    def __init__(self, inactivity_threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS):
        """Initialize governor.

        Args:
            inactivity_threshold_days: Days without progress after which an
                active challenge is abandoned
        """
        if inactivity_threshold_days < 1:
            raise ValueError("inactivity_threshold_days must be positive")
        self.inactivity_threshold_days = inactivity_threshold_days

    # -------------------------------------------------------------------------
    # Manual transitions
    # -------------------------------------------------------------------------

    def can_transition(self, current, requested) -> bool:
        """Check whether ``current -> requested`` is in the transition table."""
        try:
            current = _coerce_status(current)
            requested = _coerce_status(requested)
        except ValueError:
            return False
        return requested in ALLOWED_TRANSITIONS.get(current, frozenset())

    def transition(self, current, requested) -> ChallengeStatus:
        """Validate a manual status change.

        Args:
            current: Current status
            requested: Requested status

        Returns:
            The requested status

        Raises:
            TransitionError: If the transition is not allowed, including
                self-transitions
        """
        if not self.can_transition(current, requested):
            raise TransitionError(current, requested)
        return _coerce_status(requested)

    # -------------------------------------------------------------------------
    # Automatic transitions
    # -------------------------------------------------------------------------

    def should_auto_complete(self, challenge, completion_percentage: int, now: DateLike) -> bool:
        """Active challenge whose window has ended at 100% completion."""
        if _coerce_status(challenge.status) != ChallengeStatus.ACTIVE:
            return False
        return to_date(now) > to_date(challenge.end_date) and completion_percentage == 100

    def abandon_reason(
        self,
        challenge,
        last_activity_date: Optional[DateLike],
        now: DateLike,
    ) -> Optional[str]:
        """Why an active challenge should be abandoned, or None.

        Args:
            challenge: Challenge with ``status``, ``end_date``, ``created_at``
            last_activity_date: Date of the most recent progress entry, if any
            now: Evaluation instant
        """
        if _coerce_status(challenge.status) != ChallengeStatus.ACTIVE:
            return None

        today = to_date(now)
        if today > to_date(challenge.end_date):
            return WINDOW_LAPSED

        if last_activity_date is not None:
            idle_days = _idle_days(last_activity_date, now)
            return INACTIVE if idle_days > self.inactivity_threshold_days else None

        # No progress at all: measure from creation
        idle_days = _idle_days(challenge.created_at, now)
        return NEVER_STARTED if idle_days > self.inactivity_threshold_days else None

    def should_auto_abandon(
        self,
        challenge,
        last_activity_date: Optional[DateLike],
        now: DateLike,
    ) -> bool:
        """Check the auto-abandon rules."""
        return self.abandon_reason(challenge, last_activity_date, now) is not None

    def evaluate(
        self,
        challenge,
        completion_percentage: int,
        last_activity_date: Optional[DateLike],
        now: DateLike,
    ) -> TransitionDecision:
        """Evaluate automatic transitions for a challenge.

        Auto-complete is checked first; auto-abandon is only considered when
        auto-complete does not fire. Never raises.

        Returns:
            TransitionDecision with the resulting status and whether it changed
        """
        try:
            status = _coerce_status(challenge.status)
        except ValueError:
            return TransitionDecision(new_status=challenge.status, changed=False)

        if status != ChallengeStatus.ACTIVE:
            return TransitionDecision(new_status=status, changed=False)

        if self.should_auto_complete(challenge, completion_percentage, now):
            return TransitionDecision(
                new_status=ChallengeStatus.COMPLETED,
                changed=True,
                reason=AUTO_COMPLETED,
            )

        reason = self.abandon_reason(challenge, last_activity_date, now)
        if reason is not None:
            return TransitionDecision(
                new_status=ChallengeStatus.ABANDONED,
                changed=True,
                reason=reason,
            )

        return TransitionDecision(new_status=status, changed=False)
