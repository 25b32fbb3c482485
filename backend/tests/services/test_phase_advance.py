"""Phase Advancement — verifies the transactional half of a tick against SQLite.

Invariants:
    - Due rounds advance, future rounds stay put, COMPLETED never moves
    - One event row per (round, type) no matter how many ticks run
    - Every unfinalized vote is finalized on every tick, whatever its round
    - A failure anywhere in the pass leaves the store untouched
"""

from collections import Counter
from datetime import timedelta

import pytest
from sqlalchemy import select

from aux_rounds.core.domain_types import NotificationType, RoundStatus
from aux_rounds.models import NotificationEvent, Round, Vote
from aux_rounds.services import phase_advance
from aux_rounds.services.phase_advance import advance_phases
from aux_rounds.services.round_store import SqlVoteStore

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)
SECOND = timedelta(seconds=1)


async def _tick(session_scope, now):
    async with session_scope() as db:
        return await advance_phases(db, now)


async def _status(session_scope, round_id) -> RoundStatus:
    async with session_scope() as db:
        return RoundStatus((await db.get(Round, round_id)).status)


async def _events(session_scope) -> list[NotificationEvent]:
    async with session_scope() as db:
        return list((await db.execute(select(NotificationEvent))).scalars().all())


async def _votes(session_scope) -> list[Vote]:
    async with session_scope() as db:
        return list((await db.execute(select(Vote))).scalars().all())


@pytest.fixture
async def group(seed):
    admin = await seed.user()
    return await seed.group(admin)


# ─── Scenarios ──────────────────────────────────────────────────

async def test_inactive_round_past_start_moves_to_submission(
    session_scope, seed, group, now,
):
    r = await seed.round(
        group, status=RoundStatus.INACTIVE,
        start_date=now - HOUR, voting_start_date=now + DAY,
        end_date=now + 2 * DAY,
    )

    result = await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.SUBMISSION
    assert result.rounds_to_submission == 1
    assert result.voting_round_ids == []


async def test_voting_round_past_end_completes_and_raises_voting_ended(
    session_scope, seed, group, now,
):
    r = await seed.round(
        group, status=RoundStatus.VOTING,
        start_date=now - 2 * DAY, voting_start_date=now - DAY,
        end_date=now - SECOND,
    )

    result = await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.COMPLETED
    assert result.rounds_to_completed == 1
    assert result.raised_events == [(r.id, NotificationType.VOTING_ENDED)]


async def test_completion_finalizes_votes_of_all_rounds(
    session_scope, seed, group, now,
):
    voter = await seed.user()
    ending = await seed.round(
        group, status=RoundStatus.VOTING,
        start_date=now - 2 * DAY, voting_start_date=now - DAY,
        end_date=now - SECOND,
    )
    other = await seed.round(
        group, status=RoundStatus.VOTING,
        start_date=now - 2 * DAY, voting_start_date=now - DAY,
        end_date=now + DAY,
    )
    for r in (ending, other):
        sub = await seed.submission(r, voter)
        await seed.vote(sub, voter)

    result = await _tick(session_scope, now)

    assert result.votes_finalized == 2
    assert all(v.is_finalized for v in await _votes(session_scope))


async def test_submission_closing_within_hour_raises_ending_soon_unsent(
    session_scope, seed, group, now,
):
    r = await seed.round(
        group, status=RoundStatus.SUBMISSION,
        start_date=now - DAY, voting_start_date=now + timedelta(minutes=30),
        end_date=now + DAY,
    )

    result = await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.SUBMISSION
    events = await _events(session_scope)
    assert [(e.round_id, e.type) for e in events] == [
        (r.id, NotificationType.SUBMISSION_ENDING_SOON.value),
    ]
    assert events[0].sent_at is None
    assert result.raised_events == [(r.id, NotificationType.SUBMISSION_ENDING_SOON)]


async def test_submission_to_voting_returns_round_ids_and_raises_voting_started(
    session_scope, seed, group, now,
):
    r = await seed.round(
        group, status=RoundStatus.SUBMISSION,
        start_date=now - DAY, voting_start_date=now - SECOND,
        end_date=now + DAY,
    )

    result = await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.VOTING
    assert result.voting_round_ids == [r.id]
    assert result.raised_events == [(r.id, NotificationType.VOTING_STARTED)]


# ─── Edges and windows ──────────────────────────────────────────

async def test_future_rounds_are_left_alone(session_scope, seed, group, now):
    r = await seed.round(
        group, status=RoundStatus.INACTIVE,
        start_date=now + HOUR, voting_start_date=now + DAY,
        end_date=now + 2 * DAY,
    )

    result = await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.INACTIVE
    assert result.total_operations == 0
    assert await _events(session_scope) == []


async def test_deadline_equal_to_now_is_due(session_scope, seed, group, now):
    r = await seed.round(
        group, status=RoundStatus.INACTIVE,
        start_date=now, voting_start_date=now + DAY, end_date=now + 2 * DAY,
    )

    await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.SUBMISSION


async def test_ending_soon_window_excludes_deadline_beyond_one_hour(
    session_scope, seed, group, now,
):
    await seed.round(
        group, status=RoundStatus.SUBMISSION,
        start_date=now - DAY, voting_start_date=now + HOUR + SECOND,
        end_date=now + DAY,
    )

    await _tick(session_scope, now)

    assert await _events(session_scope) == []


async def test_ending_soon_window_includes_deadline_exactly_one_hour_out(
    session_scope, seed, group, now,
):
    r = await seed.round(
        group, status=RoundStatus.SUBMISSION,
        start_date=now - DAY, voting_start_date=now + HOUR,
        end_date=now + DAY,
    )

    await _tick(session_scope, now)

    assert [(e.round_id, e.type) for e in await _events(session_scope)] == [
        (r.id, NotificationType.SUBMISSION_ENDING_SOON.value),
    ]


async def test_far_behind_round_passes_every_stage_in_one_tick(
    session_scope, seed, group, now,
):
    r = await seed.round(
        group, status=RoundStatus.INACTIVE,
        start_date=now - 3 * DAY, voting_start_date=now - 2 * DAY,
        end_date=now - DAY,
    )

    result = await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.COMPLETED
    assert result.voting_round_ids == [r.id]
    assert {t for _, t in result.raised_events} == {
        NotificationType.VOTING_STARTED, NotificationType.VOTING_ENDED,
    }


async def test_already_completed_round_raises_nothing(
    session_scope, seed, group, now,
):
    await seed.round(
        group, status=RoundStatus.COMPLETED,
        start_date=now - 3 * DAY, voting_start_date=now - 2 * DAY,
        end_date=now - DAY,
    )

    result = await _tick(session_scope, now)

    assert result.raised_events == []
    assert await _events(session_scope) == []


# ─── Properties ─────────────────────────────────────────────────

async def test_finalizes_all_votes_globally_every_tick(
    session_scope, seed, group, now,
):
    """A vote in a round that is still VOTING is finalized on the next tick."""
    voter = await seed.user()
    open_round = await seed.round(
        group, status=RoundStatus.VOTING,
        start_date=now - 2 * DAY, voting_start_date=now - DAY,
        end_date=now + 7 * DAY,
    )
    sub = await seed.submission(open_round, voter)
    await seed.vote(sub, voter)

    result = await _tick(session_scope, now)

    assert await _status(session_scope, open_round.id) == RoundStatus.VOTING
    assert result.votes_finalized == 1
    assert [v.is_finalized for v in await _votes(session_scope)] == [True]


async def test_second_tick_at_same_instant_changes_nothing(
    session_scope, seed, group, now,
):
    voter = await seed.user()
    await seed.round(
        group, status=RoundStatus.INACTIVE,
        start_date=now - HOUR, voting_start_date=now + DAY,
        end_date=now + 2 * DAY,
    )
    voting = await seed.round(
        group, status=RoundStatus.SUBMISSION,
        start_date=now - DAY, voting_start_date=now - SECOND,
        end_date=now + DAY,
    )
    await seed.vote(await seed.submission(voting, voter), voter)

    first = await _tick(session_scope, now)
    second = await _tick(session_scope, now)

    assert first.total_operations > 0
    assert second.total_operations == 0
    assert second.raised_events == []
    assert second.voting_round_ids == []


async def test_hundred_ticks_raise_each_event_at_most_once_and_never_go_back(
    session_scope, seed, group, now,
):
    start = now - 2 * HOUR
    rounds = []
    for offset_hours in range(0, 40, 8):
        base = start + timedelta(hours=offset_hours)
        rounds.append(await seed.round(
            group, status=RoundStatus.INACTIVE,
            start_date=base + HOUR,
            voting_start_date=base + 3 * HOUR,
            end_date=base + 6 * HOUR,
        ))

    last_seen = {r.id: RoundStatus.INACTIVE for r in rounds}
    for i in range(100):
        await _tick(session_scope, start + timedelta(minutes=30 * i))
        for r in rounds:
            status = await _status(session_scope, r.id)
            assert status.rank >= last_seen[r.id].rank
            last_seen[r.id] = status

    counts = Counter((e.round_id, e.type) for e in await _events(session_scope))
    assert counts and max(counts.values()) == 1
    assert set(last_seen.values()) == {RoundStatus.COMPLETED}
    for r in rounds:
        raised = {t for (rid, t) in counts if rid == r.id}
        assert raised == {
            NotificationType.SUBMISSION_ENDING_SOON.value,
            NotificationType.VOTING_STARTED.value,
            NotificationType.VOTING_ENDED.value,
        }


async def test_failure_mid_pass_rolls_back_everything(
    session_scope, seed, group, now, monkeypatch,
):
    r = await seed.round(
        group, status=RoundStatus.SUBMISSION,
        start_date=now - DAY, voting_start_date=now - SECOND,
        end_date=now + DAY,
    )

    async def explode(self):
        raise RuntimeError("vote store down")

    monkeypatch.setattr(SqlVoteStore, "finalize_all_unfinalized", explode)

    with pytest.raises(RuntimeError):
        await _tick(session_scope, now)

    assert await _status(session_scope, r.id) == RoundStatus.SUBMISSION
    assert await _events(session_scope) == []


async def test_pass_commits_once(session_scope, seed, group, now, monkeypatch):
    await seed.round(
        group, status=RoundStatus.INACTIVE,
        start_date=now - HOUR, voting_start_date=now + DAY,
        end_date=now + 2 * DAY,
    )
    commits = []

    async with session_scope() as db:
        original = db.commit

        async def counting_commit():
            commits.append(1)
            await original()

        monkeypatch.setattr(db, "commit", counting_commit)
        await phase_advance.advance_phases(db, now)

    assert commits == [1]
