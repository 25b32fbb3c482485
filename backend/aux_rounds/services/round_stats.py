"""Round Stats — read-only counts of rounds per status and of pending transitions.

Invariants:
    - No writes; safe to call while a tick is running
    - "Ready" counts use the same PHASE_TRANSITIONS table as the engine
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from aux_rounds.core.domain_types import RoundStatus
from aux_rounds.core.round_schedule import PHASE_TRANSITIONS
from aux_rounds.models.round import Round
from aux_rounds.models.vote import Vote
from aux_rounds.schemas.round_stats import RoundStats


async def get_round_stats(db: AsyncSession, now: datetime) -> RoundStats:
    by_status = dict((await db.execute(
        select(Round.status, func.count()).group_by(Round.status)
    )).all())

    ready = []
    for transition in PHASE_TRANSITIONS:
        ready.append(await db.scalar(
            select(func.count())
            .select_from(Round)
            .where(Round.status == transition.from_status.value)
            .where(getattr(Round, transition.due_field) <= now)
        ) or 0)

    unfinalized = await db.scalar(
        select(func.count()).select_from(Vote).where(Vote.is_finalized.is_(False))
    ) or 0

    return RoundStats(
        total_rounds=sum(by_status.values()),
        inactive_rounds=by_status.get(RoundStatus.INACTIVE.value, 0),
        submission_rounds=by_status.get(RoundStatus.SUBMISSION.value, 0),
        voting_rounds=by_status.get(RoundStatus.VOTING.value, 0),
        completed_rounds=by_status.get(RoundStatus.COMPLETED.value, 0),
        unfinalized_votes=unfinalized,
        rounds_ready_to_start=ready[0],
        rounds_ready_for_voting=ready[1],
        rounds_ready_for_completion=ready[2],
    )
