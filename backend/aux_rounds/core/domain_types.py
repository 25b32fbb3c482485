"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - RoundId, GroupId, UserId wrap UUIDs — never use bare UUID in domain logic
    - RoundStatus order is INACTIVE < SUBMISSION < VOTING < COMPLETED
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: stored as their value in String columns, serialize to JSON as-is
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

RoundId = NewType("RoundId", UUID)
GroupId = NewType("GroupId", UUID)
UserId = NewType("UserId", UUID)
NotificationEventId = NewType("NotificationEventId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class RoundStatus(str, Enum):
    """Round lifecycle states — maps to DB `status` column."""
    INACTIVE = "INACTIVE"
    SUBMISSION = "SUBMISSION"
    VOTING = "VOTING"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = (
    RoundStatus.INACTIVE,
    RoundStatus.SUBMISSION,
    RoundStatus.VOTING,
    RoundStatus.COMPLETED,
)


class NotificationType(str, Enum):
    """Round notifications; at most one event row per (round, type)."""
    SUBMISSION_ENDING_SOON = "SUBMISSION_ENDING_SOON"
    VOTING_STARTED = "VOTING_STARTED"
    VOTING_ENDING_SOON = "VOTING_ENDING_SOON"
    VOTING_ENDED = "VOTING_ENDED"


# Dispatch order within one tick
NOTIFICATION_DISPATCH_ORDER = (
    NotificationType.SUBMISSION_ENDING_SOON,
    NotificationType.VOTING_STARTED,
    NotificationType.VOTING_ENDING_SOON,
    NotificationType.VOTING_ENDED,
)


class PlaylistType(str, Enum):
    """Local playlist record tags."""
    ROUND_ALL = "round-all"
