"""Challenge refresh orchestration.

Loads a challenge and its progress through the repository ports, derives
metrics, applies any automatic status transition and persists it.

Refreshing different challenges concurrently is safe. Refreshes of the same
challenge id must be serialized by the caller, since two racing refreshes
could both persist an automatic transition.
"""

import threading
import time
from typing import Callable, Optional
from uuid import uuid4

from ..exceptions import NotFoundError, PersistenceError, TrackerError, ValidationError
from ..lifecycle.governor import LifecycleGovernor
from ..logging_config import bind_refresh_context, clear_refresh_context, get_logger
from ..progress.accounting import DateLike, ProgressAccounting
from .repository import ChallengeRepository, ProgressRepository
from .schemas import (
    BatchRefreshResult,
    ChallengeResponse,
    ChallengeStatus,
    ChallengeWithMetrics,
    RefreshFailure,
)

logger = get_logger(__name__)


class ChallengeOrchestrator:
    """Refreshes challenges: metrics, automatic transitions, persistence."""

    def __init__(
        self,
        challenges: ChallengeRepository,
        progress: ProgressRepository,
        accounting: ProgressAccounting,
        governor: LifecycleGovernor,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize orchestrator.

        Args:
            challenges: Challenge repository
            progress: Progress repository
            accounting: Progress accounting service
            governor: Lifecycle governor
            clock: Monotonic clock used for batch deadlines
        """
        self.challenges = challenges
        self.progress = progress
        self.accounting = accounting
        self.governor = governor
        self.clock = clock

    def refresh_challenge(self, challenge_id: str, now: DateLike) -> ChallengeWithMetrics:
        """Refresh a single challenge.

        Args:
            challenge_id: Challenge ID
            now: Evaluation instant

        Returns:
            The challenge merged with its derived metrics

        Raises:
            NotFoundError: If the challenge does not exist
            PersistenceError: If loading or saving fails
        """
        challenge = self.challenges.get_by_id(challenge_id)
        if challenge is None:
            raise NotFoundError(f"Challenge not found: {challenge_id}")

        entries = self.progress.find_by_challenge_id(challenge_id)

        if challenge.start_date > challenge.end_date:
            error = ValidationError(
                f"start_date {challenge.start_date} is after end_date {challenge.end_date}"
            )
            logger.warning(
                "challenge_date_range_invalid",
                challenge_id=challenge_id,
                error=str(error),
            )

        metrics = self.accounting.compute_metrics(challenge, entries, now)
        decision = self.governor.evaluate(
            challenge,
            metrics.completion_percentage,
            metrics.last_activity_date,
            now,
        )

        previous_status = challenge.status
        if decision.changed:
            challenge = self._persist_status(challenge, decision.new_status)
            logger.info(
                "challenge_status_changed",
                challenge_id=challenge_id,
                from_status=previous_status.value,
                to_status=challenge.status.value,
                reason=decision.reason,
            )

        return ChallengeWithMetrics(
            **challenge.model_dump(),
            metrics=metrics,
            previous_status=previous_status,
            status_changed=decision.changed,
        )

    def refresh_challenges(
        self,
        user_id: str,
        now: DateLike,
        deadline: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchRefreshResult:
        """Refresh every challenge of a user independently.

        A failure in one challenge is recorded and does not stop the others.
        Once ``deadline`` (in ``clock`` seconds) has passed or
        ``cancel_event`` is set, no further challenges are started.

        Args:
            user_id: Owner of the challenges
            now: Evaluation instant
            deadline: Optional clock value after which scheduling stops
            cancel_event: Optional event that stops scheduling when set

        Returns:
            BatchRefreshResult with refreshed challenges, failures, skipped
            and pending ids
        """
        result = BatchRefreshResult()
        bind_refresh_context(uuid4().hex, user_id=user_id)
        try:
            challenges = self.challenges.find_by_user_id(user_id)

            for index, challenge in enumerate(challenges):
                if self._should_stop(deadline, cancel_event):
                    result.cancelled = True
                    result.pending = [c.id for c in challenges[index:]]
                    logger.warning("challenge_refresh_stopped", pending=len(result.pending))
                    break

                try:
                    enriched = self.refresh_challenge(challenge.id, now)
                except NotFoundError:
                    result.skipped.append(challenge.id)
                    logger.info("challenge_refresh_skipped", challenge_id=challenge.id)
                except Exception as e:
                    result.failures.append(
                        RefreshFailure(
                            challenge_id=challenge.id,
                            error=type(e).__name__,
                            message=str(e),
                        )
                    )
                    if isinstance(e, TrackerError):
                        logger.error(
                            "challenge_refresh_failed",
                            challenge_id=challenge.id,
                            error=str(e),
                        )
                    else:
                        logger.exception("challenge_refresh_crashed", challenge_id=challenge.id)
                else:
                    result.refreshed.append(enriched)

            logger.info(
                "challenges_refreshed",
                refreshed=len(result.refreshed),
                changed=len(result.changed),
                failed=len(result.failures),
                skipped=len(result.skipped),
            )
            return result
        finally:
            clear_refresh_context()

    def _should_stop(
        self,
        deadline: Optional[float],
        cancel_event: Optional[threading.Event],
    ) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and self.clock() >= deadline

    def _persist_status(
        self,
        challenge: ChallengeResponse,
        status: ChallengeStatus,
    ) -> ChallengeResponse:
        try:
            return self.challenges.update_status(challenge.id, status)
        except TrackerError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Failed to update status of challenge {challenge.id}: {e}"
            ) from e
