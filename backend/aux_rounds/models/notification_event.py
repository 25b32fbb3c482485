"""NotificationEvent ORM — durable log of round notifications raised and sent.

Invariants:
    - (round_id, type) is unique: at most one event per round per notification type
    - sent_at NULL means "raised, not yet attempted"; it goes NULL -> non-NULL once

Design Decisions:
    - The unique constraint is the dedup safety net across processes; inserts go
      through INSERT ... ON CONFLICT DO NOTHING (services/round_store.py)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from aux_rounds.db.base import Base


class NotificationEvent(Base):
    """NotificationEvent entity — one per (round, type)."""
    __tablename__ = "notification_events"
    __table_args__ = (
        UniqueConstraint("round_id", "type", name="uq_notification_events_round_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    round_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rounds.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
