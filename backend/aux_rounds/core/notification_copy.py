"""Notification Copy — push title/body/data per notification type.

Invariants:
    - One template per NotificationType; unknown types raise KeyError
    - data always carries roundId, groupId and type (the mobile client routes on them)
"""

from dataclasses import dataclass, field
from typing import Any

from aux_rounds.core.domain_types import NotificationType


@dataclass(frozen=True)
class NotificationPayload:
    """Push message content, independent of the delivery channel."""
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


_TEMPLATES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.SUBMISSION_ENDING_SOON: (
        "{group}: Submissions closing soon",
        '"{theme}" submissions end in 1 hour. Get yours in!',
    ),
    NotificationType.VOTING_STARTED: (
        "{group}: Voting started",
        'Round "{theme}" is open for voting now!',
    ),
    NotificationType.VOTING_ENDING_SOON: (
        "Voting closing soon",
        '"{theme}" voting ends in 1 hour. Cast your votes!',
    ),
    NotificationType.VOTING_ENDED: (
        "{group}: Voting ended",
        'Round "{theme}" has ended. Check results soon!',
    ),
}


def build_payload(
    notification_type: NotificationType,
    *,
    round_id: str,
    group_id: str,
    group_name: str,
    theme: str,
) -> NotificationPayload:
    title, body = _TEMPLATES[notification_type]
    return NotificationPayload(
        title=title.format(group=group_name, theme=theme),
        body=body.format(group=group_name, theme=theme),
        data={
            "roundId": round_id,
            "groupId": group_id,
            "type": notification_type.value,
        },
    )
