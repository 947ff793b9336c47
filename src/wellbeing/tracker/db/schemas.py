"""Shared enums used across the ORM, the services and the CLI."""

from enum import Enum


class Frequency(str, Enum):
    """How often a challenge expects progress."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ChallengeStatus(str, Enum):
    """Lifecycle status of a challenge."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ChallengeType(str, Enum):
    """Suggested category tags. Any string is accepted as a type."""

    EMOTIONS = "emotions"
    MEDITATION = "meditation"
    JOURNALING = "journaling"
    ACTIVITY = "activity"
    CUSTOM = "custom"
