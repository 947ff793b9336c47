"""Pydantic schemas for derived progress metrics."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class StreakInfo(BaseModel):
    """Current and best runs of consecutive satisfied days."""

    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    last_completed_date: Optional[date] = None


class DerivedMetrics(BaseModel):
    """Metrics recomputed on demand from a challenge and its entries.

    ``completed_periods`` is not clamped to ``total_periods``: with the
    entry-count strategy a weekly or monthly challenge can have more
    satisfied daily entries than periods. ``completion_percentage`` is
    capped at 100 when reported.
    """

    total_periods: int = Field(0, ge=0)
    completed_periods: int = Field(0, ge=0)
    completion_percentage: int = Field(0, ge=0, le=100)
    days_remaining: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    last_completed_date: Optional[date] = None
    last_activity_date: Optional[date] = None
