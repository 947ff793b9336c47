"""Wellness challenges module.

Provides functionality for:
- Creating and managing challenges and their daily progress
- Refreshing challenges: derived metrics and automatic status transitions
- Repository ports and their SQLite adapters
"""

from .manager import ChallengeManager, ProgressManager
from .models import Challenge, ProgressEntry
from .orchestrator import ChallengeOrchestrator
from .repository import (
    ChallengeRepository,
    ProgressRepository,
    SqlChallengeRepository,
    SqlProgressRepository,
)
from .schemas import (
    BatchRefreshResult,
    ChallengeCreate,
    ChallengeResponse,
    ChallengeStatus,
    ChallengeSummary,
    ChallengeType,
    ChallengeUpdate,
    ChallengeWithMetrics,
    Frequency,
    ProgressCreate,
    ProgressResponse,
    RefreshFailure,
)

__all__ = [
    "ChallengeManager",
    "ProgressManager",
    "Challenge",
    "ProgressEntry",
    "ChallengeOrchestrator",
    "ChallengeRepository",
    "ProgressRepository",
    "SqlChallengeRepository",
    "SqlProgressRepository",
    "BatchRefreshResult",
    "ChallengeCreate",
    "ChallengeResponse",
    "ChallengeStatus",
    "ChallengeSummary",
    "ChallengeType",
    "ChallengeUpdate",
    "ChallengeWithMetrics",
    "Frequency",
    "ProgressCreate",
    "ProgressResponse",
    "RefreshFailure",
]
