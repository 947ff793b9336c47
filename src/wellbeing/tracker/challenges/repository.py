"""Repository ports used by the orchestrator, and their SQLite adapters."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..db.schemas import ChallengeStatus
from ..db.sqlite import Database
from ..exceptions import NotFoundError, PersistenceError
from .models import Challenge, ProgressEntry
from .schemas import ChallengeResponse, ProgressResponse


class ChallengeRepository(ABC):
    """Port for reading challenges and persisting status changes."""

    @abstractmethod
    def get_by_id(self, challenge_id: str) -> Optional[ChallengeResponse]:
        pass

    @abstractmethod
    def update_status(self, challenge_id: str, status: ChallengeStatus) -> ChallengeResponse:
        """Persist a new status and return the updated challenge."""
        pass

    @abstractmethod
    def find_by_user_id(self, user_id: str) -> List[ChallengeResponse]:
        """Return every challenge owned by a user, oldest first."""
        pass


class ProgressRepository(ABC):
    """Port for reading progress entries."""

    @abstractmethod
    def find_by_challenge_id(self, challenge_id: str) -> List[ProgressResponse]:
        """Return all entries of a challenge, ordered by date."""
        pass


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to {action}: {e}") from e


class SqlChallengeRepository(ChallengeRepository):
    """Challenge repository backed by the SQLite database."""

    def __init__(self, db: Database):
        self.db = db

    def to_response(self, model: Challenge) -> ChallengeResponse:
        """Convert ORM model -> core schema."""
        return ChallengeResponse.model_validate(model)

    def get_by_id(self, challenge_id: str) -> Optional[ChallengeResponse]:
        with _translate_errors(f"load challenge {challenge_id}"):
            with self.db.get_session() as session:
                challenge = session.get(Challenge, challenge_id)
                return self.to_response(challenge) if challenge else None

    def update_status(self, challenge_id: str, status: ChallengeStatus) -> ChallengeResponse:
        with _translate_errors(f"update status of challenge {challenge_id}"):
            with self.db.get_session() as session:
                challenge = session.get(Challenge, challenge_id)
                if not challenge:
                    raise NotFoundError(f"Challenge not found: {challenge_id}")

                challenge.status = ChallengeStatus(status).value
                session.commit()
                session.refresh(challenge)
                return self.to_response(challenge)

    def find_by_user_id(self, user_id: str) -> List[ChallengeResponse]:
        with _translate_errors(f"list challenges of user {user_id}"):
            with self.db.get_session() as session:
                stmt = (
                    select(Challenge)
                    .where(Challenge.user_id == user_id)
                    .order_by(Challenge.created_at)
                )
                return [self.to_response(c) for c in session.execute(stmt).scalars()]


class SqlProgressRepository(ProgressRepository):
    """Progress repository backed by the SQLite database."""

    def __init__(self, db: Database):
        self.db = db

    def to_response(self, model: ProgressEntry) -> ProgressResponse:
        """Convert ORM model -> core schema."""
        return ProgressResponse.model_validate(model)

    def find_by_challenge_id(self, challenge_id: str) -> List[ProgressResponse]:
        with _translate_errors(f"load progress of challenge {challenge_id}"):
            with self.db.get_session() as session:
                stmt = (
                    select(ProgressEntry)
                    .where(ProgressEntry.challenge_id == challenge_id)
                    .order_by(ProgressEntry.entry_date)
                )
                return [self.to_response(e) for e in session.execute(stmt).scalars()]
