"""Round, Vote and NotificationEvent stores — SQLAlchemy implementations of the boundary protocols.

Invariants:
    - Stores never commit: the caller owns the transaction boundary
    - advance_status is one UPDATE filtered on the current status, so a row can
      never move backward or be counted twice
    - upsert_if_absent is INSERT ... ON CONFLICT (round_id, type) DO NOTHING
      followed by a read; two concurrent callers end up with the same single row

Design Decisions:
    - Core UPDATE with synchronize_session=False: the engine session holds no
      Round objects during the pass, so there is nothing to synchronize
    - Dialect-specific insert picked from the session bind (PostgreSQL in
      production, SQLite in tests); both support ON CONFLICT DO NOTHING
"""

import logging
from datetime import datetime
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from aux_rounds.core.domain_types import (
    NotificationEventId, NotificationType, RoundId, RoundStatus,
)
from aux_rounds.models.notification_event import NotificationEvent
from aux_rounds.models.round import Round
from aux_rounds.models.vote import Vote

logger = logging.getLogger(__name__)

_ROUND_DATE_FIELDS = ("start_date", "voting_start_date", "end_date")


def _date_column(field_name: str):
    if field_name not in _ROUND_DATE_FIELDS:
        raise ValueError(f"Unknown round date field: {field_name}")
    return getattr(Round, field_name)


class SqlRoundStore:
    """RoundStore over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def advance_status(
        self,
        from_status: RoundStatus,
        due_field: str,
        now: datetime,
        to_status: RoundStatus,
        round_ids: Sequence[RoundId] | None = None,
    ) -> int:
        """Move every due round in `from_status` to `to_status`. Returns row count."""
        stmt = (
            update(Round)
            .where(Round.status == from_status.value)
            .where(_date_column(due_field) <= now)
            .values(status=to_status.value)
            .execution_options(synchronize_session=False)
        )
        if round_ids is not None:
            if not round_ids:
                return 0
            stmt = stmt.where(Round.id.in_(list(round_ids)))
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    async def find_due_ids(
        self, status: RoundStatus, due_field: str, now: datetime,
    ) -> list[RoundId]:
        result = await self.db.execute(
            select(Round.id)
            .where(Round.status == status.value)
            .where(_date_column(due_field) <= now)
            .order_by(Round.id)
        )
        return [RoundId(r) for r in result.scalars().all()]

    async def find_ids_in_window(
        self, status: RoundStatus, field_name: str,
        after: datetime, until: datetime,
    ) -> list[RoundId]:
        """Rounds in `status` whose date is in (after, until]."""
        column = _date_column(field_name)
        result = await self.db.execute(
            select(Round.id)
            .where(Round.status == status.value)
            .where(column > after)
            .where(column <= until)
            .order_by(Round.id)
        )
        return [RoundId(r) for r in result.scalars().all()]


class SqlVoteStore:
    """VoteStore over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def finalize_all_unfinalized(self) -> int:
        result = await self.db.execute(
            update(Vote)
            .where(Vote.is_finalized.is_(False))
            .values(is_finalized=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


class SqlNotificationEventStore:
    """NotificationEventStore over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(NotificationEvent.__table__)
        if dialect == "sqlite":
            return sqlite.insert(NotificationEvent.__table__)
        raise NotImplementedError(f"No atomic upsert for dialect '{dialect}'")

    async def upsert_if_absent(
        self, round_id: RoundId, notification_type: NotificationType,
    ) -> tuple[NotificationEvent, bool]:
        """Insert the (round, type) event unless it exists. Returns (event, created)."""
        stmt = (
            self._insert()
            .values(round_id=round_id, type=notification_type.value)
            .on_conflict_do_nothing(index_elements=["round_id", "type"])
        )
        result = await self.db.execute(stmt)
        created = (result.rowcount or 0) > 0
        event = (await self.db.execute(
            select(NotificationEvent)
            .where(NotificationEvent.round_id == round_id)
            .where(NotificationEvent.type == notification_type.value)
        )).scalar_one()
        if created:
            logger.debug(
                "Raised notification event",
                extra={
                    "round_id": str(round_id),
                    "notification_type": notification_type.value,
                },
            )
        return event, created

    async def find_unsent(
        self, notification_type: NotificationType,
    ) -> list[NotificationEvent]:
        result = await self.db.execute(
            select(NotificationEvent)
            .where(NotificationEvent.type == notification_type.value)
            .where(NotificationEvent.sent_at.is_(None))
            .order_by(NotificationEvent.created_at, NotificationEvent.id)
        )
        return list(result.scalars().all())

    async def mark_sent(
        self, event_id: NotificationEventId, sent_at: datetime,
    ) -> None:
        """Set sent_at once; an already-sent event keeps its first timestamp."""
        await self.db.execute(
            update(NotificationEvent)
            .where(NotificationEvent.id == event_id)
            .where(NotificationEvent.sent_at.is_(None))
            .values(sent_at=sent_at)
            .execution_options(synchronize_session=False)
        )
