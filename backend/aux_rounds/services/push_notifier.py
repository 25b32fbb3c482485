"""Push Notifier — resolves users to device tokens and hands them to Expo.

Invariants:
    - Revoked tokens are never sent to
    - Best-effort: returns tickets for logging, callers never branch on them
"""

import logging

from sqlalchemy import select

from aux_rounds.core.domain_types import UserId
from aux_rounds.core.notification_copy import NotificationPayload
from aux_rounds.infrastructure.database import SessionScope
from aux_rounds.infrastructure.expo_push import ExpoPushClient
from aux_rounds.models.push_token import PushToken

logger = logging.getLogger(__name__)


class PushNotifier:
    """Notifier implementation backed by push_tokens + Expo."""

    def __init__(self, session_scope: SessionScope, expo: ExpoPushClient):
        self.session_scope = session_scope
        self.expo = expo

    async def send_to_users(
        self, user_ids: list[UserId], payload: NotificationPayload,
    ) -> list[dict]:
        if not user_ids:
            return []
        async with self.session_scope() as db:
            result = await db.execute(
                select(PushToken.token)
                .where(PushToken.user_id.in_(list(user_ids)))
                .where(PushToken.is_revoked.is_(False))
            )
            tokens = list(result.scalars().all())

        logger.info(
            "Sending push to %d users (%d tokens)", len(user_ids), len(tokens),
        )
        return await self.expo.send(tokens, payload)
