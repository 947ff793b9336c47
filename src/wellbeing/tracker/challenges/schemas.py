"""Pydantic schemas for wellness challenges."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..db.schemas import ChallengeStatus, ChallengeType, Frequency
from ..progress.schemas import DerivedMetrics


class ChallengeBase(BaseModel):
    """Base challenge fields."""

    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    challenge_type: str = Field(ChallengeType.CUSTOM.value, min_length=1, max_length=50)
    frequency: Frequency = Frequency.DAILY
    start_date: date
    end_date: date
    target_value: float = Field(..., gt=0, description="Value an entry must reach")

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v, info):
        """Validate end date is not before start date."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must not be before start_date")
        return v


class ChallengeCreate(ChallengeBase):
    """Schema for creating a challenge."""

    user_id: str = Field(..., min_length=1, max_length=64)


class ChallengeUpdate(BaseModel):
    """Partial update for a challenge.

    Only fields explicitly set are applied; unset fields never overwrite
    stored values with defaults.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    challenge_type: Optional[str] = Field(None, min_length=1, max_length=50)
    frequency: Optional[Frequency] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_value: Optional[float] = Field(None, gt=0)
    status: Optional[ChallengeStatus] = None


class ChallengeResponse(BaseModel):
    """A persisted challenge as seen by the core services."""

    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    challenge_type: str
    frequency: Frequency
    start_date: date
    end_date: date
    target_value: float
    status: ChallengeStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ChallengeWithMetrics(ChallengeResponse):
    """A challenge merged with its derived metrics after a refresh."""

    metrics: DerivedMetrics
    previous_status: ChallengeStatus
    status_changed: bool = False


class ProgressCreate(BaseModel):
    """Schema for logging progress against a challenge."""

    entry_date: date = Field(default_factory=date.today)
    value: float = Field(..., ge=0)
    notes: Optional[str] = None


class ProgressResponse(BaseModel):
    """A persisted progress entry."""

    id: str
    challenge_id: str
    entry_date: date
    value: float
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ChallengeSummary(BaseModel):
    """Counts of a user's challenges by status."""

    total_challenges: int
    active_challenges: int
    completed_challenges: int
    abandoned_challenges: int
    average_completion_rate: float  # completed / (completed + abandoned), percent


class RefreshFailure(BaseModel):
    """A single challenge that failed during a batch refresh."""

    challenge_id: str
    error: str  # Exception class name
    message: str


class BatchRefreshResult(BaseModel):
    """Outcome of refreshing every challenge of a user."""

    refreshed: list[ChallengeWithMetrics] = Field(default_factory=list)
    failures: list[RefreshFailure] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)  # Vanished between list and refresh
    pending: list[str] = Field(default_factory=list)  # Not scheduled after cancel/deadline
    cancelled: bool = False

    @property
    def changed(self) -> list[ChallengeWithMetrics]:
        """Challenges whose status changed during the refresh."""
        return [c for c in self.refreshed if c.status_changed]
