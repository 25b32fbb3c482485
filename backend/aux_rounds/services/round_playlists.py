"""Round Playlists — builds the Spotify playlist for a round that just opened voting.

Invariants:
    - Owned by the group admin; no usable admin token -> MissingCredentialError (skip)
    - Remote playlist is private and named "{group} · {theme}"
    - Tracks are added only when the round has at least one submission
    - One local PlaylistItem per submission, 1-indexed, in submission order
    - No DB session is held open across Spotify calls

Design Decisions:
    - Best effort: no retry here or on later ticks (the round has already left
      SUBMISSION, so the trigger never recurs); the engine logs and moves on
    - PlaylistClient built per round from the admin's token via a factory, so
      tests substitute a fake without touching HTTP
"""

import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from aux_rounds.core.domain_types import PlaylistType, RoundId, UserId
from aux_rounds.core.errors import (
    ErrorContext, MissingCredentialError, ResourceNotFoundError,
)
from aux_rounds.core.playlist_naming import (
    numbered, playlist_description, playlist_name, track_uri,
)
from aux_rounds.core.repository_protocols import AccountProvider, PlaylistClient
from aux_rounds.infrastructure.database import SessionScope
from aux_rounds.models.playlist import Playlist, PlaylistItem
from aux_rounds.models.round import Round
from aux_rounds.models.submission import Submission

logger = logging.getLogger(__name__)

PlaylistClientFactory = Callable[[str], PlaylistClient]


class RoundPlaylistBuilder:
    """Creates one round-all playlist per call."""

    def __init__(
        self,
        session_scope: SessionScope,
        accounts: AccountProvider,
        client_factory: PlaylistClientFactory,
    ):
        self.session_scope = session_scope
        self.accounts = accounts
        self.client_factory = client_factory

    async def create_round_playlist(self, round_id: RoundId) -> Playlist:
        ctx = ErrorContext(round_id=str(round_id))
        round_, submissions = await self._load_round(round_id, ctx)
        group = round_.group
        ctx.group_id = str(group.id)

        account = await self.accounts.get_account_with_valid_token(
            UserId(group.admin_id),
        )
        if account is None or not account.access_token:
            raise MissingCredentialError(str(group.admin_id), ctx)

        client = self.client_factory(account.access_token)
        name = playlist_name(group.name, round_.theme)
        remote = await client.create_playlist(
            account.spotify_id, name, playlist_description(round_.theme), False,
        )
        uris = [track_uri(s.spotify_track_id) for s in submissions]
        if uris:
            await client.add_tracks(remote.id, uris)

        playlist = Playlist(
            name=name,
            user_id=account.user_id,
            group_id=group.id,
            round_id=round_.id,
            type=PlaylistType.ROUND_ALL.value,
            is_public=False,
            spotify_playlist_id=remote.id,
            spotify_url=remote.url,
            items=[
                PlaylistItem(
                    spotify_track_id=s.spotify_track_id,
                    track_name=s.track_name,
                    artist_name=s.artist_name,
                    album_name=s.album_name,
                    image_url=s.image_url,
                    order=position,
                )
                for position, s in numbered(submissions)
            ],
        )
        async with self.session_scope() as db:
            db.add(playlist)
            await db.commit()

        logger.info(
            "Created Spotify playlist %s with %d tracks", remote.id, len(uris),
            extra={"round_id": str(round_id), "playlist_id": remote.id},
        )
        return playlist

    async def _load_round(
        self, round_id: RoundId, ctx: ErrorContext,
    ) -> tuple[Round, list[Submission]]:
        async with self.session_scope() as db:
            round_ = (await db.execute(
                select(Round)
                .options(selectinload(Round.group))
                .where(Round.id == round_id)
            )).scalar_one_or_none()
            if round_ is None:
                raise ResourceNotFoundError("Round", str(round_id), ctx)

            submissions = (await db.execute(
                select(Submission)
                .where(Submission.round_id == round_id)
                .order_by(Submission.created_at, Submission.id)
            )).scalars().all()
            return round_, list(submissions)
