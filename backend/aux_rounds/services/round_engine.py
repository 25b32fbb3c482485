"""Round Lifecycle Engine — one tick = commit phase changes, then run side effects.

Invariants:
    - Phase 1 (advance_phases) commits before any side effect starts; a side-effect
      failure can never roll it back
    - Phase 1 failures propagate (the tick fails, nothing was committed, the next
      tick retries from the same state)
    - Phase 2 reads only the phase-1 delta: playlists for voting_round_ids, then
      notification dispatch
    - Each round's playlist failure is isolated; missing credentials are a skip

Design Decisions:
    - Engine holds no per-tick state: concurrency control lives in the scheduler
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from aux_rounds.core.domain_types import NotificationType, RoundId
from aux_rounds.core.errors import AuxError
from aux_rounds.core.repository_protocols import Clock
from aux_rounds.core.round_schedule import PhaseAdvanceResult
from aux_rounds.infrastructure.database import SessionScope
from aux_rounds.services.notification_dispatch import NotificationDispatcher
from aux_rounds.services.phase_advance import advance_phases
from aux_rounds.services.round_playlists import RoundPlaylistBuilder

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """Everything one tick did, for logs and the stats endpoint."""
    now: datetime
    phases: PhaseAdvanceResult
    playlists_created: int = 0
    playlists_skipped: int = 0
    playlists_failed: int = 0
    notifications_attempted: dict[NotificationType, int] = field(default_factory=dict)

    @property
    def total_operations(self) -> int:
        return self.phases.total_operations


class RoundLifecycleEngine:
    """Orchestrates phase advancement, playlists, and notifications."""

    def __init__(
        self,
        session_scope: SessionScope,
        playlists: RoundPlaylistBuilder,
        dispatcher: NotificationDispatcher,
        clock: Clock,
        logging_enabled: bool = True,
    ):
        self.session_scope = session_scope
        self.playlists = playlists
        self.dispatcher = dispatcher
        self.clock = clock
        self.logging_enabled = logging_enabled

    async def tick(self) -> TickReport:
        now = self.clock.now()
        async with self.session_scope() as db:
            phases = await advance_phases(db, now)

        report = TickReport(now=now, phases=phases)
        await self._create_playlists(phases.voting_round_ids, report)
        report.notifications_attempted = await self.dispatcher.dispatch_pending(now)

        if self.logging_enabled and report.total_operations > 0:
            logger.info(phases.summary())
        return report

    async def _create_playlists(
        self, round_ids: list[RoundId], report: TickReport,
    ) -> None:
        for round_id in round_ids:
            extra = {"round_id": str(round_id)}
            try:
                await self.playlists.create_round_playlist(round_id)
                report.playlists_created += 1
            except AuxError as e:
                if e.recoverable:
                    logger.warning(
                        "Skipping playlist creation: %s", e.message,
                        extra={**extra, "error_code": e.code},
                    )
                    report.playlists_skipped += 1
                else:
                    logger.error(
                        "Failed to create playlist: %s", e.message,
                        extra={**extra, "error_code": e.code},
                    )
                    report.playlists_failed += 1
            except Exception as e:
                logger.error(
                    "Failed to create playlist: %s", e,
                    extra=extra, exc_info=True,
                )
                report.playlists_failed += 1
