"""Notification Dispatch — one push attempt per unsent NotificationEvent, then mark it sent.

Invariants:
    - Runs after phase advancement has committed, outside its transaction
    - Types are dispatched in NOTIFICATION_DISPATCH_ORDER
    - VOTING_ENDING_SOON is raised here (upsert-if-absent) right before its dispatch,
      since its trigger does not depend on a status transition
    - Every unsent event gets exactly one attempt per tick and is then marked sent,
      whether delivery succeeded or not; each mark commits on its own
    - Unsent events left by an earlier crashed tick are picked up again

Design Decisions:
    - Fire-and-forget: delivery errors are logged, never retried, never raised
    - The event list is read first and the session closed, so a slow push
      service never holds a DB connection
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from aux_rounds.core.domain_types import (
    NOTIFICATION_DISPATCH_ORDER, NotificationType, RoundId, RoundStatus, UserId,
)
from aux_rounds.core.notification_copy import build_payload
from aux_rounds.core.repository_protocols import Clock, Notifier
from aux_rounds.core.round_schedule import ending_soon_bounds
from aux_rounds.infrastructure.database import SessionScope
from aux_rounds.models.group import Group
from aux_rounds.models.round import Round
from aux_rounds.services.round_store import SqlNotificationEventStore, SqlRoundStore

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Drains the notification event log through a Notifier."""

    def __init__(self, session_scope: SessionScope, notifier: Notifier, clock: Clock):
        self.session_scope = session_scope
        self.notifier = notifier
        self.clock = clock

    async def dispatch_pending(self, now: datetime) -> dict[NotificationType, int]:
        """Attempt every unsent event. Returns attempts per type."""
        attempted: dict[NotificationType, int] = {}
        for notification_type in NOTIFICATION_DISPATCH_ORDER:
            if notification_type == NotificationType.VOTING_ENDING_SOON:
                await self.raise_voting_ending_soon(now)
            attempted[notification_type] = await self._dispatch_type(notification_type)
        return attempted

    async def raise_voting_ending_soon(self, now: datetime) -> int:
        """Raise VOTING_ENDING_SOON for rounds whose voting ends within the hour."""
        after, until = ending_soon_bounds(now)
        raised = 0
        async with self.session_scope() as db:
            round_ids = await SqlRoundStore(db).find_ids_in_window(
                RoundStatus.VOTING, "end_date", after, until,
            )
            events = SqlNotificationEventStore(db)
            for round_id in round_ids:
                _, created = await events.upsert_if_absent(
                    round_id, NotificationType.VOTING_ENDING_SOON,
                )
                raised += int(created)
            await db.commit()
        return raised

    async def _dispatch_type(self, notification_type: NotificationType) -> int:
        async with self.session_scope() as db:
            unsent = await SqlNotificationEventStore(db).find_unsent(notification_type)
            pending = [(event.id, RoundId(event.round_id)) for event in unsent]

        for event_id, round_id in pending:
            await self._attempt(round_id, notification_type)
            async with self.session_scope() as db:
                await SqlNotificationEventStore(db).mark_sent(event_id, self.clock.now())
                await db.commit()
        return len(pending)

    async def _attempt(
        self, round_id: RoundId, notification_type: NotificationType,
    ) -> None:
        log_extra = {
            "round_id": str(round_id),
            "notification_type": notification_type.value,
        }
        try:
            audience = await self._load_audience(round_id)
            if audience is None:
                logger.warning("Round vanished before notification", extra=log_extra)
                return
            group, theme, user_ids = audience
            if not user_ids:
                logger.info("Round group has no members", extra=log_extra)
                return

            payload = build_payload(
                notification_type,
                round_id=str(round_id),
                group_id=str(group.id),
                group_name=group.name,
                theme=theme,
            )
            await self.notifier.send_to_users(user_ids, payload)
        except Exception as e:
            logger.error(
                "Notification delivery failed: %s", e,
                extra=log_extra, exc_info=True,
            )

    async def _load_audience(
        self, round_id: RoundId,
    ) -> tuple[Group, str, list[UserId]] | None:
        async with self.session_scope() as db:
            round_ = (await db.execute(
                select(Round)
                .options(selectinload(Round.group).selectinload(Group.members))
                .where(Round.id == round_id)
            )).scalar_one_or_none()
            if round_ is None:
                return None
            group = round_.group
            return group, round_.theme, [UserId(m.user_id) for m in group.members]
