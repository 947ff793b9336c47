"""Database module for local SQLite storage."""

from .models import Base, generate_uuid, utc_now_iso
from .schemas import ChallengeStatus, ChallengeType, Frequency
from .sqlite import Database

__all__ = [
    "Base",
    "generate_uuid",
    "utc_now_iso",
    "ChallengeStatus",
    "ChallengeType",
    "Frequency",
    "Database",
]
