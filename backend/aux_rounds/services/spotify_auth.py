"""Spotify Auth — hands out a user's Spotify account with a usable access token.

Invariants:
    - Tokens expiring within the refresh margin are refreshed before use
    - New tokens are persisted before the account is returned
    - A failed refresh is logged and the stored (possibly stale) account is returned;
      the caller's Spotify call then fails and is handled like any playlist failure
    - Unknown user -> None
"""

import logging
from datetime import timedelta

from aux_rounds.core.domain_types import UserId
from aux_rounds.core.errors import ErrorContext, SpotifyAPIError
from aux_rounds.core.repository_protocols import Clock, SpotifyAccount
from aux_rounds.core.round_schedule import ensure_utc
from aux_rounds.infrastructure.database import SessionScope
from aux_rounds.infrastructure.spotify_client import SpotifyAccountsClient
from aux_rounds.models.user import User

logger = logging.getLogger(__name__)


class SpotifyAuthService:
    """AccountProvider backed by the users table and the Spotify accounts service."""

    def __init__(
        self,
        session_scope: SessionScope,
        accounts: SpotifyAccountsClient,
        clock: Clock,
        refresh_margin_seconds: int = 300,
    ):
        self.session_scope = session_scope
        self.accounts = accounts
        self.clock = clock
        self.refresh_margin = timedelta(seconds=refresh_margin_seconds)

    async def get_account_with_valid_token(
        self, user_id: UserId,
    ) -> SpotifyAccount | None:
        async with self.session_scope() as db:
            user = await db.get(User, user_id)
            if user is None:
                return None

            if self._needs_refresh(user):
                await self._refresh(db, user)

            return SpotifyAccount(
                user_id=UserId(user.id),
                spotify_id=user.spotify_id,
                access_token=user.spotify_access_token,
            )

    def _needs_refresh(self, user: User) -> bool:
        if not user.spotify_refresh_token or user.spotify_token_expiry is None:
            return False
        deadline = self.clock.now() + self.refresh_margin
        return ensure_utc(user.spotify_token_expiry) <= deadline

    async def _refresh(self, db, user: User) -> None:
        logger.info("Refreshing Spotify token", extra={"user_id": str(user.id)})
        try:
            tokens = await self.accounts.refresh(
                user.spotify_refresh_token,
                context=ErrorContext(user_id=str(user.id)),
            )
        except SpotifyAPIError as e:
            logger.error(
                "Failed to refresh Spotify token: %s", e.message,
                extra={"user_id": str(user.id), "error_code": e.code},
            )
            return

        user.spotify_access_token = tokens.access_token
        user.spotify_refresh_token = tokens.refresh_token
        user.spotify_token_expiry = self.clock.now() + timedelta(
            seconds=tokens.expires_in,
        )
        await db.commit()
