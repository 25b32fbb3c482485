"""Round statistics schema — counts exposed by GET /api/v1/rounds/stats."""

from pydantic import BaseModel, Field


class RoundStats(BaseModel):
    """Snapshot of round and vote counts at one instant."""
    total_rounds: int = Field(ge=0)
    inactive_rounds: int = Field(ge=0)
    submission_rounds: int = Field(ge=0)
    voting_rounds: int = Field(ge=0)
    completed_rounds: int = Field(ge=0)
    unfinalized_votes: int = Field(ge=0)
    rounds_ready_to_start: int = Field(ge=0)
    rounds_ready_for_voting: int = Field(ge=0)
    rounds_ready_for_completion: int = Field(ge=0)


class RoundStatsResponse(BaseModel):
    """Stats plus scheduler liveness."""
    stats: RoundStats
    scheduler_running: bool
