"""ORM Models — SQLAlchemy declarative models for all engine-touched entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Only the fields the round engine reads or writes are modelled

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from aux_rounds.models.user import User  # noqa: F401
from aux_rounds.models.group import Group, GroupMember  # noqa: F401
from aux_rounds.models.round import Round  # noqa: F401
from aux_rounds.models.submission import Submission  # noqa: F401
from aux_rounds.models.vote import Vote  # noqa: F401
from aux_rounds.models.notification_event import NotificationEvent  # noqa: F401
from aux_rounds.models.playlist import Playlist, PlaylistItem  # noqa: F401
from aux_rounds.models.push_token import PushToken  # noqa: F401
