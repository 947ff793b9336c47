"""Challenge and progress managers for wellness challenge operations."""

from datetime import date
from typing import Optional

from sqlalchemy import select

from ..db.sqlite import Database
from ..exceptions import NotFoundError, ValidationError
from ..lifecycle.governor import LifecycleGovernor
from ..logging_config import get_logger
from .models import Challenge, ProgressEntry
from .schemas import (
    ChallengeCreate,
    ChallengeResponse,
    ChallengeStatus,
    ChallengeSummary,
    ChallengeUpdate,
    ProgressCreate,
    ProgressResponse,
)

logger = get_logger(__name__)


class ChallengeManager:
    """Manages challenge definitions and manual status changes."""

    def __init__(self, db: Database, governor: LifecycleGovernor):
        """Initialize challenge manager.

        Args:
            db: Database instance
            governor: Lifecycle governor validating status changes
        """
        self.db = db
        self.governor = governor

    def create_challenge(self, data: ChallengeCreate) -> ChallengeResponse:
        """Create a new challenge.

        Args:
            data: Challenge creation data

        Returns:
            Created challenge
        """
        with self.db.get_session() as session:
            challenge = Challenge(
                user_id=data.user_id,
                title=data.title,
                description=data.description,
                challenge_type=data.challenge_type,
                frequency=data.frequency.value,
                start_date=data.start_date.isoformat(),
                end_date=data.end_date.isoformat(),
                target_value=data.target_value,
                status=ChallengeStatus.ACTIVE.value,
            )

            session.add(challenge)
            session.commit()
            session.refresh(challenge)

            logger.info("challenge_created", challenge_id=challenge.id, user_id=data.user_id)
            return ChallengeResponse.model_validate(challenge)

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeResponse]:
        """Get a challenge by ID.

        Args:
            challenge_id: Challenge ID

        Returns:
            Challenge or None
        """
        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)
            return ChallengeResponse.model_validate(challenge) if challenge else None

    def list_challenges(
        self,
        user_id: Optional[str] = None,
        status: Optional[ChallengeStatus] = None,
        challenge_type: Optional[str] = None,
    ) -> list[ChallengeResponse]:
        """List challenges, oldest first.

        Args:
            user_id: Filter by owner
            status: Filter by status
            challenge_type: Filter by type tag

        Returns:
            List of challenges
        """
        with self.db.get_session() as session:
            stmt = select(Challenge)

            if user_id:
                stmt = stmt.where(Challenge.user_id == user_id)
            if status:
                stmt = stmt.where(Challenge.status == ChallengeStatus(status).value)
            if challenge_type:
                stmt = stmt.where(Challenge.challenge_type == challenge_type)

            stmt = stmt.order_by(Challenge.created_at)

            challenges = session.execute(stmt).scalars().all()
            return [ChallengeResponse.model_validate(c) for c in challenges]

    def update_challenge(
        self,
        challenge_id: str,
        data: ChallengeUpdate,
    ) -> Optional[ChallengeResponse]:
        """Apply a partial update to a challenge.

        Only fields explicitly set on ``data`` are written. A status change
        goes through the transition table.

        Args:
            challenge_id: Challenge ID
            data: Update data

        Returns:
            Updated challenge or None if it does not exist

        Raises:
            TransitionError: If the requested status change is not allowed
            ValidationError: If the resulting date range is inverted
        """
        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)

            if not challenge:
                return None

            update_data = data.model_dump(exclude_unset=True)

            for field, value in update_data.items():
                if field == "status" and value is not None:
                    challenge.status = self.governor.transition(challenge.status, value).value
                elif field in ("start_date", "end_date") and value is not None:
                    setattr(challenge, field, value.isoformat())
                elif field == "frequency" and value is not None:
                    challenge.frequency = value.value
                elif value is not None and hasattr(challenge, field):
                    setattr(challenge, field, value)
                elif field == "description":
                    challenge.description = None

            if challenge.start_date > challenge.end_date:
                raise ValidationError(
                    f"start_date {challenge.start_date} is after end_date {challenge.end_date}"
                )

            session.commit()
            session.refresh(challenge)

            logger.info(
                "challenge_updated",
                challenge_id=challenge_id,
                fields=sorted(update_data),
            )
            return ChallengeResponse.model_validate(challenge)

    def change_status(self, challenge_id: str, status: ChallengeStatus) -> ChallengeResponse:
        """Manually change a challenge's status.

        Args:
            challenge_id: Challenge ID
            status: Requested status

        Returns:
            Updated challenge

        Raises:
            NotFoundError: If the challenge does not exist
            TransitionError: If the transition is not allowed
        """
        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)
            if not challenge:
                raise NotFoundError(f"Challenge not found: {challenge_id}")

            previous = challenge.status
            challenge.status = self.governor.transition(previous, status).value
            session.commit()
            session.refresh(challenge)

            logger.info(
                "challenge_status_changed",
                challenge_id=challenge_id,
                from_status=previous,
                to_status=challenge.status,
                reason="manual",
            )
            return ChallengeResponse.model_validate(challenge)

    def delete_challenge(self, challenge_id: str) -> bool:
        """Delete a challenge and all of its progress entries.

        Args:
            challenge_id: Challenge ID

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)

            if not challenge:
                return False

            session.delete(challenge)
            session.commit()

            logger.info("challenge_deleted", challenge_id=challenge_id)
            return True

    def get_summary(self, user_id: str) -> ChallengeSummary:
        """Summarize a user's challenges by status.

        The average completion rate is the share of finished challenges
        (completed or abandoned) that were completed.

        Args:
            user_id: Owner of the challenges

        Returns:
            ChallengeSummary
        """
        challenges = self.list_challenges(user_id=user_id)

        active = sum(1 for c in challenges if c.status == ChallengeStatus.ACTIVE)
        completed = sum(1 for c in challenges if c.status == ChallengeStatus.COMPLETED)
        abandoned = sum(1 for c in challenges if c.status == ChallengeStatus.ABANDONED)

        average_completion_rate = 0.0
        if completed > 0:
            average_completion_rate = round(completed / (completed + abandoned) * 100, 1)

        return ChallengeSummary(
            total_challenges=len(challenges),
            active_challenges=active,
            completed_challenges=completed,
            abandoned_challenges=abandoned,
            average_completion_rate=average_completion_rate,
        )


class ProgressManager:
    """Manages daily progress entries."""

    def __init__(self, db: Database):
        """Initialize progress manager.

        Args:
            db: Database instance
        """
        self.db = db

    def log_progress(self, challenge_id: str, data: ProgressCreate) -> ProgressResponse:
        """Record progress for a day, replacing any entry for the same day.

        Args:
            challenge_id: Challenge ID
            data: Progress data

        Returns:
            Created or updated entry

        Raises:
            NotFoundError: If the challenge does not exist
        """
        with self.db.get_session() as session:
            if not session.get(Challenge, challenge_id):
                raise NotFoundError(f"Challenge not found: {challenge_id}")

            stmt = select(ProgressEntry).where(
                ProgressEntry.challenge_id == challenge_id,
                ProgressEntry.entry_date == data.entry_date.isoformat(),
            )
            entry = session.execute(stmt).scalar_one_or_none()

            if entry:
                entry.value = data.value
                if "notes" in data.model_fields_set:
                    entry.notes = data.notes
            else:
                entry = ProgressEntry(
                    challenge_id=challenge_id,
                    entry_date=data.entry_date.isoformat(),
                    value=data.value,
                    notes=data.notes,
                )
                session.add(entry)

            session.commit()
            session.refresh(entry)

            logger.info(
                "progress_logged",
                challenge_id=challenge_id,
                entry_date=entry.entry_date,
                value=entry.value,
            )
            return ProgressResponse.model_validate(entry)

    def get_progress(self, challenge_id: str, entry_date: date) -> Optional[ProgressResponse]:
        """Get the entry of a challenge for a specific day."""
        with self.db.get_session() as session:
            stmt = select(ProgressEntry).where(
                ProgressEntry.challenge_id == challenge_id,
                ProgressEntry.entry_date == entry_date.isoformat(),
            )
            entry = session.execute(stmt).scalar_one_or_none()
            return ProgressResponse.model_validate(entry) if entry else None

    def list_progress(
        self,
        challenge_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ProgressResponse]:
        """List entries of a challenge, oldest first.

        Args:
            challenge_id: Challenge ID
            start_date: Start of range (inclusive)
            end_date: End of range (inclusive)

        Returns:
            List of entries
        """
        with self.db.get_session() as session:
            stmt = select(ProgressEntry).where(ProgressEntry.challenge_id == challenge_id)

            if start_date:
                stmt = stmt.where(ProgressEntry.entry_date >= start_date.isoformat())
            if end_date:
                stmt = stmt.where(ProgressEntry.entry_date <= end_date.isoformat())

            stmt = stmt.order_by(ProgressEntry.entry_date)

            entries = session.execute(stmt).scalars().all()
            return [ProgressResponse.model_validate(e) for e in entries]

    def delete_progress(self, challenge_id: str, entry_date: date) -> bool:
        """Delete the entry of a challenge for a day.

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            stmt = select(ProgressEntry).where(
                ProgressEntry.challenge_id == challenge_id,
                ProgressEntry.entry_date == entry_date.isoformat(),
            )
            entry = session.execute(stmt).scalar_one_or_none()

            if not entry:
                return False

            session.delete(entry)
            session.commit()
            return True
