"""Root conftest — shared test configuration, async DB and seed helpers.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - All sessions share one connection (StaticPool), so rows committed by
      one session are visible to the next
    - Tests open sessions through session_scope, exactly like the services do

Design Decisions:
    - SQLite in-memory: fast, no external dependency; ON CONFLICT DO NOTHING
      behaves the same as on PostgreSQL
    - session_scope is a real DatabaseSessionManager.session bound to the
      test engine, so rollback-to-DatabaseError mapping is exercised too
"""

import os
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

# Ensure tests never talk to real services
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SPOTIFY_CLIENT_ID", "test-client-id")
os.environ.setdefault("SPOTIFY_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("ROUND_SCHEDULER_ENABLED", "false")

from aux_rounds.core.domain_types import RoundStatus  # noqa: E402
from aux_rounds.db.base import Base  # noqa: E402
from aux_rounds.infrastructure.database import DatabaseSessionManager  # noqa: E402
from aux_rounds.models import (  # noqa: E402
    Group, GroupMember, PushToken, Round, Submission, User, Vote,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def db_manager(test_engine):
    return DatabaseSessionManager.from_engine(test_engine)


@pytest.fixture
def session_scope(db_manager):
    return db_manager.session


class Seeder:
    """Inserts rows through session_scope; each call commits."""

    def __init__(self, session_scope):
        self.session_scope = session_scope
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _add(self, *rows):
        async with self.session_scope() as db:
            db.add_all(rows)
            await db.commit()
        return rows[0]

    async def user(self, *, access_token="access-token", refresh_token=None,
                   token_expiry=None, spotify_id=None) -> User:
        n = self._next()
        return await self._add(User(
            spotify_id=spotify_id or f"spotify-user-{n}",
            display_name=f"User {n}",
            spotify_access_token=access_token,
            spotify_refresh_token=refresh_token,
            spotify_token_expiry=token_expiry,
        ))

    async def group(self, admin: User, members=(), name="Friday Crew") -> Group:
        group = Group(name=name, admin_id=admin.id)
        await self._add(group)
        for user in (admin, *members):
            await self._add(GroupMember(group_id=group.id, user_id=user.id))
        return group

    async def round(self, group: Group, *, status=RoundStatus.INACTIVE,
                    start_date=NOW, voting_start_date=NOW, end_date=NOW,
                    theme="Songs for a rainy day") -> Round:
        return await self._add(Round(
            group_id=group.id,
            theme=theme,
            order=self._next(),
            start_date=start_date,
            voting_start_date=voting_start_date,
            end_date=end_date,
            status=status.value,
        ))

    async def submission(self, round_: Round, user: User, *, track_id=None,
                         created_at=None) -> Submission:
        n = self._next()
        return await self._add(Submission(
            round_id=round_.id,
            user_id=user.id,
            spotify_track_id=track_id or f"track{n}",
            track_name=f"Track {n}",
            artist_name=f"Artist {n}",
            album_name=f"Album {n}",
            created_at=created_at or NOW,
        ))

    async def vote(self, submission: Submission, user: User, *,
                   is_finalized=False) -> Vote:
        return await self._add(Vote(
            submission_id=submission.id, user_id=user.id,
            count=1, is_finalized=is_finalized,
        ))

    async def push_token(self, user: User, token: str, *,
                         is_revoked=False) -> PushToken:
        return await self._add(PushToken(
            user_id=user.id, token=token, is_revoked=is_revoked,
        ))


@pytest.fixture
def seed(session_scope):
    return Seeder(session_scope)
