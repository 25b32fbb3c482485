"""Service test fixtures — fakes for outbound collaborators and a wired engine.

Invariants:
    - Spotify and Expo are never reached: playlist client, accounts and
      notifier are in-memory fakes (tests/services/fakes.py)
    - The clock starts at NOW and only moves when a test moves it
"""

import pytest

from aux_rounds.services.notification_dispatch import NotificationDispatcher
from aux_rounds.services.round_engine import RoundLifecycleEngine
from aux_rounds.services.round_playlists import RoundPlaylistBuilder
from tests.services.fakes import (
    FakeAccounts, FakeClock, FakeNotifier, FakePlaylistClient,
)


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def accounts():
    return FakeAccounts()


@pytest.fixture
def playlist_client():
    return FakePlaylistClient()


@pytest.fixture
def playlist_builder(session_scope, accounts, playlist_client):
    return RoundPlaylistBuilder(session_scope, accounts, playlist_client.factory)


@pytest.fixture
def dispatcher(session_scope, notifier, clock):
    return NotificationDispatcher(session_scope, notifier, clock)


@pytest.fixture
def engine(session_scope, playlist_builder, dispatcher, clock):
    return RoundLifecycleEngine(
        session_scope, playlist_builder, dispatcher, clock,
    )
