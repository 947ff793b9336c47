"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the challenge tracker,
including in-memory databases, sample challenges and progress entries,
and in-memory repository fakes.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import uuid4

import pytest
import structlog

from wellbeing.tracker.challenges import (
    ChallengeManager,
    ChallengeOrchestrator,
    ChallengeRepository,
    ChallengeResponse,
    ChallengeStatus,
    ProgressManager,
    ProgressRepository,
    ProgressResponse,
    SqlChallengeRepository,
    SqlProgressRepository,
)
from wellbeing.tracker.db import Database
from wellbeing.tracker.exceptions import NotFoundError
from wellbeing.tracker.lifecycle import LifecycleGovernor
from wellbeing.tracker.progress import ProgressAccounting


# ============================================================================
# Logging
# ============================================================================


@pytest.fixture(autouse=True)
def reset_structlog():
    """Drop any logging configuration (and cached loggers) after each test."""
    yield
    structlog.reset_defaults()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def accounting() -> ProgressAccounting:
    """Accounting with default settings."""
    return ProgressAccounting()


@pytest.fixture
def governor() -> LifecycleGovernor:
    """Governor with the default 14 day inactivity threshold."""
    return LifecycleGovernor()


@pytest.fixture
def challenge_manager(db: Database, governor: LifecycleGovernor) -> ChallengeManager:
    """Create a ChallengeManager with test database."""
    return ChallengeManager(db, governor)


@pytest.fixture
def progress_manager(db: Database) -> ProgressManager:
    """Create a ProgressManager with test database."""
    return ProgressManager(db)


@pytest.fixture
def orchestrator(
    db: Database,
    accounting: ProgressAccounting,
    governor: LifecycleGovernor,
) -> ChallengeOrchestrator:
    """Orchestrator wired to the SQLite adapters."""
    return ChallengeOrchestrator(
        challenges=SqlChallengeRepository(db),
        progress=SqlProgressRepository(db),
        accounting=accounting,
        governor=governor,
    )


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def challenge_factory() -> Callable[..., ChallengeResponse]:
    """Build in-memory challenges.

    Defaults to the ten day daily challenge of January 2024 with a target of 1.
    """

    def _make(**overrides) -> ChallengeResponse:
        created = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
        fields = {
            "id": str(uuid4()),
            "user_id": "user-1",
            "title": "Daily meditation",
            "description": None,
            "challenge_type": "meditation",
            "frequency": "daily",
            "start_date": date(2024, 1, 1),
            "end_date": date(2024, 1, 10),
            "target_value": 1,
            "status": ChallengeStatus.ACTIVE,
            "created_at": created,
            "updated_at": created,
        }
        fields.update(overrides)
        return ChallengeResponse(**fields)

    return _make


@pytest.fixture
def entry_factory() -> Callable[..., list[ProgressResponse]]:
    """Build progress entries for a list of dates."""

    def _make(
        dates: list[date],
        value: float = 1,
        challenge_id: str = "challenge-1",
    ) -> list[ProgressResponse]:
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return [
            ProgressResponse(
                id=str(uuid4()),
                challenge_id=challenge_id,
                entry_date=d,
                value=value,
                created_at=now,
                updated_at=now,
            )
            for d in dates
        ]

    return _make


def day_range(start: date, days: int) -> list[date]:
    """Consecutive dates starting at ``start``."""
    return [start + timedelta(days=i) for i in range(days)]


@pytest.fixture
def days() -> Callable[[date, int], list[date]]:
    """Expose ``day_range`` to tests."""
    return day_range


# ============================================================================
# In-Memory Repository Fakes
# ============================================================================


class InMemoryChallengeRepository(ChallengeRepository):
    """Challenge repository holding challenges in a dict."""

    def __init__(self, challenges: Optional[list[ChallengeResponse]] = None):
        self.challenges = {c.id: c for c in challenges or []}
        self.status_updates: list[tuple[str, ChallengeStatus]] = []
        self.fail_updates_for: set[str] = set()
        self.vanished: set[str] = set()

    def get_by_id(self, challenge_id: str) -> Optional[ChallengeResponse]:
        if challenge_id in self.vanished:
            return None
        return self.challenges.get(challenge_id)

    def update_status(self, challenge_id: str, status: ChallengeStatus) -> ChallengeResponse:
        if challenge_id in self.fail_updates_for:
            raise RuntimeError("disk full")
        if challenge_id not in self.challenges:
            raise NotFoundError(f"Challenge not found: {challenge_id}")
        self.status_updates.append((challenge_id, status))
        updated = self.challenges[challenge_id].model_copy(update={"status": status})
        self.challenges[challenge_id] = updated
        return updated

    def find_by_user_id(self, user_id: str) -> list[ChallengeResponse]:
        return [c for c in self.challenges.values() if c.user_id == user_id]


class InMemoryProgressRepository(ProgressRepository):
    """Progress repository holding entries per challenge id."""

    def __init__(self, entries: Optional[dict[str, list[ProgressResponse]]] = None):
        self.entries = entries or {}

    def find_by_challenge_id(self, challenge_id: str) -> list[ProgressResponse]:
        return sorted(self.entries.get(challenge_id, []), key=lambda e: e.entry_date)


@pytest.fixture
def memory_repositories() -> tuple[InMemoryChallengeRepository, InMemoryProgressRepository]:
    """Empty in-memory repositories."""
    return InMemoryChallengeRepository(), InMemoryProgressRepository()
