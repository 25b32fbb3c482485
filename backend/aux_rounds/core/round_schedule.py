"""Round Schedule — pure timing rules for round phase transitions.

Invariants:
    - All functions are PURE: no IO, no async, no DB; "now" is always an argument
    - Transitions only move forward: INACTIVE -> SUBMISSION -> VOTING -> COMPLETED
    - A transition is due when its deadline is <= now (inclusive)
    - An "ending soon" window is (now, now + 1h] (exclusive start, inclusive end)

Design Decisions:
    - PHASE_TRANSITIONS is the single table both the SQL pass and the
      stats endpoint read, so "ready" counts match what the engine advances
    - Naive datetimes are treated as UTC (SQLite drops tzinfo on round-trip)
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from aux_rounds.core.domain_types import NotificationType, RoundId, RoundStatus


ENDING_SOON_WINDOW = timedelta(hours=1)


class PhaseTransition(NamedTuple):
    """One edge of the round state machine."""
    from_status: RoundStatus
    due_field: str
    to_status: RoundStatus


PHASE_TRANSITIONS = (
    PhaseTransition(RoundStatus.INACTIVE, "start_date", RoundStatus.SUBMISSION),
    PhaseTransition(RoundStatus.SUBMISSION, "voting_start_date", RoundStatus.VOTING),
    PhaseTransition(RoundStatus.VOTING, "end_date", RoundStatus.COMPLETED),
)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ending_soon_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Return (exclusive_start, inclusive_end) of the ending-soon window."""
    return now, now + ENDING_SOON_WINDOW


@dataclass
class PhaseAdvanceResult:
    """Delta committed by one phase-advancement pass."""
    rounds_to_submission: int = 0
    rounds_to_voting: int = 0
    rounds_to_completed: int = 0
    votes_finalized: int = 0
    voting_round_ids: list[RoundId] = field(default_factory=list)
    raised_events: list[tuple[RoundId, NotificationType]] = field(default_factory=list)

    @property
    def total_operations(self) -> int:
        return (
            self.rounds_to_submission
            + self.rounds_to_voting
            + self.rounds_to_completed
            + self.votes_finalized
        )

    def summary(self) -> str:
        return (
            f"Advanced {self.rounds_to_submission} rounds to SUBMISSION, "
            f"{self.rounds_to_voting} rounds to VOTING, "
            f"{self.rounds_to_completed} rounds to COMPLETED, "
            f"finalized {self.votes_finalized} votes"
        )
