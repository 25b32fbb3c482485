"""Phase Advancement — the transactional half of a round-engine tick.

Invariants:
    - One call = one transaction: every status change, event raise and vote
      finalization commits together or not at all
    - Steps run in a fixed order: raise SUBMISSION_ENDING_SOON, INACTIVE->SUBMISSION,
      SUBMISSION->VOTING (+ VOTING_STARTED), VOTING->COMPLETED (+ VOTING_ENDED),
      finalize votes
    - Steps see earlier steps' writes, so a round far behind schedule may pass
      several stages in one call (each edge still fires at most once)
    - Vote finalization is global: every unfinalized vote, whatever its round
    - No side effects here: the returned delta drives playlists and notifications

Design Decisions:
    - Select-then-update for the VOTING and COMPLETED edges: the selected ids
      are the delta, and the UPDATE re-checks status so a concurrent tick
      cannot double-count a round
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from aux_rounds.core.domain_types import NotificationType, RoundId, RoundStatus
from aux_rounds.core.round_schedule import (
    PHASE_TRANSITIONS, PhaseAdvanceResult, ending_soon_bounds,
)
from aux_rounds.services.round_store import (
    SqlNotificationEventStore, SqlRoundStore, SqlVoteStore,
)

logger = logging.getLogger(__name__)

_TO_SUBMISSION, _TO_VOTING, _TO_COMPLETED = PHASE_TRANSITIONS


async def advance_phases(db: AsyncSession, now: datetime) -> PhaseAdvanceResult:
    """Advance every due round and finalize votes, then commit."""
    rounds = SqlRoundStore(db)
    votes = SqlVoteStore(db)
    events = SqlNotificationEventStore(db)
    result = PhaseAdvanceResult()

    async def raise_for(
        round_ids: list[RoundId], notification_type: NotificationType,
    ) -> None:
        for round_id in round_ids:
            _, created = await events.upsert_if_absent(round_id, notification_type)
            if created:
                result.raised_events.append((round_id, notification_type))

    # 1. SUBMISSION_ENDING_SOON: voting starts within the next hour
    after, until = ending_soon_bounds(now)
    closing = await rounds.find_ids_in_window(
        RoundStatus.SUBMISSION, "voting_start_date", after, until,
    )
    await raise_for(closing, NotificationType.SUBMISSION_ENDING_SOON)

    # 2. INACTIVE -> SUBMISSION
    result.rounds_to_submission = await rounds.advance_status(
        _TO_SUBMISSION.from_status, _TO_SUBMISSION.due_field, now,
        _TO_SUBMISSION.to_status,
    )

    # 3. SUBMISSION -> VOTING
    to_voting = await rounds.find_due_ids(
        _TO_VOTING.from_status, _TO_VOTING.due_field, now,
    )
    if to_voting:
        result.rounds_to_voting = await rounds.advance_status(
            _TO_VOTING.from_status, _TO_VOTING.due_field, now,
            _TO_VOTING.to_status, round_ids=to_voting,
        )
        result.voting_round_ids = to_voting
        await raise_for(to_voting, NotificationType.VOTING_STARTED)

    # 4. VOTING -> COMPLETED
    to_completed = await rounds.find_due_ids(
        _TO_COMPLETED.from_status, _TO_COMPLETED.due_field, now,
    )
    if to_completed:
        result.rounds_to_completed = await rounds.advance_status(
            _TO_COMPLETED.from_status, _TO_COMPLETED.due_field, now,
            _TO_COMPLETED.to_status, round_ids=to_completed,
        )
        await raise_for(to_completed, NotificationType.VOTING_ENDED)

    # 5. Finalize every unfinalized vote
    result.votes_finalized = await votes.finalize_all_unfinalized()

    await db.commit()
    logger.debug(result.summary())
    return result
