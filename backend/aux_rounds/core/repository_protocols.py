"""Boundary Protocols — contracts between the round engine and its collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - NotificationEventStore.upsert_if_absent is a single atomic statement,
      never a find-then-create pair

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - Async in Protocol: boundary methods are async because implementations do IO
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, Sequence

from aux_rounds.core.domain_types import (
    NotificationEventId, NotificationType, RoundId, RoundStatus, UserId,
)
from aux_rounds.core.notification_copy import NotificationPayload


@dataclass(frozen=True)
class SpotifyAccount:
    """Minimal view of a user's Spotify credentials."""
    user_id: UserId
    spotify_id: str
    access_token: str | None


@dataclass(frozen=True)
class RemotePlaylist:
    """Playlist as created on the music service."""
    id: str
    url: str | None = None


class Clock(Protocol):
    """Source of the current time (aware UTC)."""
    def now(self) -> datetime: ...


class RoundStore(Protocol):
    """Contract for round status persistence — transactional with VoteStore."""
    async def advance_status(
        self, from_status: RoundStatus, due_field: str, now: datetime,
        to_status: RoundStatus, round_ids: Sequence[RoundId] | None = None,
    ) -> int: ...
    async def find_due_ids(
        self, status: RoundStatus, due_field: str, now: datetime,
    ) -> list[RoundId]: ...
    async def find_ids_in_window(
        self, status: RoundStatus, field_name: str,
        after: datetime, until: datetime,
    ) -> list[RoundId]: ...


class VoteStore(Protocol):
    """Contract for vote finalization."""
    async def finalize_all_unfinalized(self) -> int: ...


class NotificationEventStore(Protocol):
    """Contract for the idempotent notification event log."""
    async def upsert_if_absent(
        self, round_id: RoundId, notification_type: NotificationType,
    ) -> tuple[Any, bool]: ...
    async def find_unsent(self, notification_type: NotificationType) -> list[Any]: ...
    async def mark_sent(
        self, event_id: NotificationEventId, sent_at: datetime,
    ) -> None: ...


class AccountProvider(Protocol):
    """Auth collaborator — returns the account with a fresh token when possible."""
    async def get_account_with_valid_token(
        self, user_id: UserId,
    ) -> SpotifyAccount | None: ...


class PlaylistClient(Protocol):
    """Remote playlist operations, bound to one access token."""
    async def create_playlist(
        self, owner_spotify_id: str, name: str, description: str,
        is_public: bool = False,
    ) -> RemotePlaylist: ...
    async def add_tracks(self, playlist_id: str, uris: list[str]) -> None: ...


class Notifier(Protocol):
    """Best-effort push delivery; the return value is never relied upon."""
    async def send_to_users(
        self, user_ids: list[UserId], payload: NotificationPayload,
    ) -> Any: ...
