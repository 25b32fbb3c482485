"""Round ORM — one themed song round inside a group.

Invariants:
    - Always belongs to a Group (group_id FK, immutable after creation)
    - order is positive and unique within its group
    - start_date <= voting_start_date <= end_date (validated at creation, not here)
    - status only moves forward; after creation only the round engine writes it

Design Decisions:
    - status as String(20) holding RoundStatus values: readable in SQL, no DB enum migrations
    - Composite index on (status, ...) dates: every engine query filters by status first
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from aux_rounds.core.domain_types import RoundStatus
from aux_rounds.db.base import Base


class Round(Base):
    """Round entity — theme, schedule, and lifecycle status."""
    __tablename__ = "rounds"
    __table_args__ = (
        UniqueConstraint("group_id", "order", name="uq_rounds_group_order"),
        Index("ix_rounds_status_start_date", "status", "start_date"),
        Index("ix_rounds_status_voting_start_date", "status", "voting_start_date"),
        Index("ix_rounds_status_end_date", "status", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    group_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    theme: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    voting_start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    end_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RoundStatus.INACTIVE.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    group: Mapped["Group"] = relationship("Group", back_populates="rounds")
    submissions: Mapped[list["Submission"]] = relationship(
        "Submission", back_populates="round", cascade="all, delete-orphan",
        order_by="Submission.created_at",
    )
