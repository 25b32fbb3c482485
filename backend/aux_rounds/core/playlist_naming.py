"""Playlist Naming — pure helpers for the round-all playlist.

Invariants:
    - Playlist name is "{group} · {theme}"
    - Item order is 1-indexed and follows submission order
"""

SPOTIFY_TRACK_URI_PREFIX = "spotify:track:"


def playlist_name(group_name: str, theme: str) -> str:
    return f"{group_name} · {theme}"


def playlist_description(theme: str) -> str:
    return f'Give Me The Aux - Round playlist for "{theme}"'


def track_uri(spotify_track_id: str) -> str:
    return f"{SPOTIFY_TRACK_URI_PREFIX}{spotify_track_id}"


def numbered(items: list) -> list[tuple[int, object]]:
    """Pair each item with its 1-indexed playlist position."""
    return [(position, item) for position, item in enumerate(items, start=1)]
