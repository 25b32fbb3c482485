"""Playlist ORM — local mirror of a playlist created on Spotify.

Invariants:
    - A round-all playlist references its round, group, and the creating user (group admin)
    - Items are ordered by a 1-indexed `order` matching submission order
    - Not mutated by the round engine after creation

Design Decisions:
    - Track metadata copied into items: the playlist stays readable if a submission is deleted
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from aux_rounds.core.domain_types import PlaylistType
from aux_rounds.db.base import Base


class Playlist(Base):
    """Playlist entity — owns its items."""
    __tablename__ = "playlists"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    group_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    round_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rounds.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PlaylistType.ROUND_ALL.value,
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    spotify_playlist_id: Mapped[str] = mapped_column(String(64), nullable=False)
    spotify_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    items: Mapped[list["PlaylistItem"]] = relationship(
        "PlaylistItem", back_populates="playlist",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="PlaylistItem.order",
    )


class PlaylistItem(Base):
    """One track in a playlist, with its position."""
    __tablename__ = "playlist_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    playlist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("playlists.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    spotify_track_id: Mapped[str] = mapped_column(String(64), nullable=False)
    track_name: Mapped[str] = mapped_column(String(500), nullable=False)
    artist_name: Mapped[str] = mapped_column(String(500), nullable=False)
    album_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    playlist: Mapped["Playlist"] = relationship("Playlist", back_populates="items")
