"""Round Management — read-only view of the round lifecycle.

Invariants:
    - GET only: rounds are advanced by the scheduler, never by a request
    - scheduler_running is False when the scheduler was disabled or never wired
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from aux_rounds.infrastructure.clock import SystemClock
from aux_rounds.infrastructure.database import get_db
from aux_rounds.schemas.round_stats import RoundStatsResponse
from aux_rounds.services.round_stats import get_round_stats

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rounds", tags=["rounds"])


@router.get("/stats", response_model=RoundStatsResponse)
async def round_stats(request: Request, db: AsyncSession = Depends(get_db)):
    """Round counts per status plus rounds waiting for the next tick."""
    clock = getattr(request.app.state, "clock", None) or SystemClock()
    scheduler = getattr(request.app.state, "round_scheduler", None)
    stats = await get_round_stats(db, clock.now())
    return RoundStatsResponse(
        stats=stats,
        scheduler_running=bool(scheduler and scheduler.is_running),
    )
