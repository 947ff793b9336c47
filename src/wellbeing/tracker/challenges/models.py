"""SQLAlchemy models for wellness challenges.

Tables:
- challenges: Challenge definitions
- progress_entries: Daily progress recorded against a challenge
"""

from typing import Optional

from sqlalchemy import Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.models import Base, generate_uuid, utc_now_iso


class Challenge(Base):
    """Challenge model - stores challenge definitions."""

    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Free-form category tag
    challenge_type: Mapped[str] = mapped_column(String(50), default="custom")

    # daily, weekly or monthly
    frequency: Mapped[str] = mapped_column(String(10), default="daily")

    # Inclusive window
    start_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date
    end_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date

    # Value a progress entry must reach to count for its period
    target_value: Mapped[float] = mapped_column(Float, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="active", index=True)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )

    # Relationships
    progress_entries: Mapped[list["ProgressEntry"]] = relationship(
        "ProgressEntry",
        back_populates="challenge",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Challenge(id={self.id}, title='{self.title}', status={self.status})>"


class ProgressEntry(Base):
    """Progress entry model - one record per challenge per day."""

    __tablename__ = "progress_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    challenge_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    entry_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date
    value: Mapped[float] = mapped_column(Float, default=0.0)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )

    # Relationships
    challenge: Mapped["Challenge"] = relationship(
        "Challenge", back_populates="progress_entries"
    )

    # Upsert key: one entry per challenge per day
    __table_args__ = (
        UniqueConstraint("challenge_id", "entry_date", name="uq_progress_challenge_date"),
    )

    def __repr__(self) -> str:
        return f"<ProgressEntry(challenge_id={self.challenge_id}, date={self.entry_date}, value={self.value})>"
