"""Spotify clients — verifies request shapes, retry policy and error mapping.

Invariants:
    - 429 and connection failures are retried, other errors are not
    - add_tracks sends at most 100 URIs per request
    - Refresh keeps the old refresh token when Spotify omits a new one
"""

import json

import httpx
import pytest

from aux_rounds.core.errors import SpotifyAPIError
from aux_rounds.infrastructure.spotify_client import (
    SpotifyAccountsClient, SpotifyClient,
)


def _client(handler, **kwargs) -> SpotifyClient:
    return SpotifyClient(
        "token-123", api_url="https://api.test/v1",
        transport=httpx.MockTransport(handler), base_delay_ms=0, **kwargs,
    )


async def test_create_playlist_posts_to_owner_and_parses_response():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={
            "id": "pl1", "external_urls": {"spotify": "https://open.spotify.com/playlist/pl1"},
        })

    remote = await _client(handler).create_playlist("owner-1", "Crew · Theme", "desc")

    [request] = seen
    assert request.method == "POST"
    assert request.url.path == "/v1/users/owner-1/playlists"
    assert request.headers["Authorization"] == "Bearer token-123"
    assert json.loads(request.content) == {
        "name": "Crew · Theme", "description": "desc", "public": False,
    }
    assert remote.id == "pl1"
    assert remote.url == "https://open.spotify.com/playlist/pl1"


async def test_add_tracks_chunks_by_hundred():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"snapshot_id": "s"})

    uris = [f"spotify:track:{i}" for i in range(250)]
    await _client(handler).add_tracks("pl1", uris)

    assert [len(b["uris"]) for b in bodies] == [100, 100, 50]
    assert bodies[0]["uris"][0] == "spotify:track:0"
    assert bodies[2]["uris"][-1] == "spotify:track:249"


async def test_rate_limit_is_retried_then_succeeds():
    responses = iter([
        httpx.Response(429, headers={"Retry-After": "0"}),
        httpx.Response(201, json={"id": "pl1"}),
    ])

    remote = await _client(lambda request: next(responses)).create_playlist(
        "owner", "name", "desc",
    )

    assert remote.id == "pl1"
    assert remote.url is None


async def test_rate_limit_exhausted_raises_with_retry_after():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, headers={"Retry-After": "0"})

    with pytest.raises(SpotifyAPIError) as exc_info:
        await _client(handler, max_retries=2).create_playlist("owner", "name", "desc")

    assert len(calls) == 3
    assert exc_info.value.api_error_type == "rate_limit"
    assert exc_info.value.status_code == 429


async def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, json={"error": {"status": 403, "message": "Forbidden"}})

    with pytest.raises(SpotifyAPIError) as exc_info:
        await _client(handler).create_playlist("owner", "name", "desc")

    assert len(calls) == 1
    assert exc_info.value.api_error_type == "client_error"
    assert "Forbidden" in exc_info.value.message


async def test_server_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(SpotifyAPIError) as exc_info:
        await _client(handler).add_tracks("pl1", ["spotify:track:1"])

    assert len(calls) == 1
    assert exc_info.value.api_error_type == "server_error"


async def test_connection_errors_are_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(201, json={"id": "pl1"})

    remote = await _client(handler).create_playlist("owner", "name", "desc")

    assert remote.id == "pl1"
    assert len(attempts) == 3


async def test_timeout_is_not_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(SpotifyAPIError) as exc_info:
        await _client(handler).create_playlist("owner", "name", "desc")

    assert len(attempts) == 1
    assert exc_info.value.api_error_type == "timeout"


async def test_refresh_posts_form_and_keeps_old_refresh_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"access_token": "new", "expires_in": 1800})

    client = SpotifyAccountsClient(
        "cid", "secret", token_url="https://accounts.test/api/token",
        transport=httpx.MockTransport(handler), base_delay_ms=0,
    )
    tokens = await client.refresh("refresh-1")

    [request] = seen
    form = dict(pair.split("=") for pair in request.content.decode().split("&"))
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "refresh-1"
    assert form["client_id"] == "cid"
    assert tokens.access_token == "new"
    assert tokens.refresh_token == "refresh-1"
    assert tokens.expires_in == 1800


async def test_refresh_error_uses_error_description():
    def handler(request):
        return httpx.Response(400, json={
            "error": "invalid_grant", "error_description": "Refresh token revoked",
        })

    client = SpotifyAccountsClient(
        "cid", "secret", transport=httpx.MockTransport(handler), base_delay_ms=0,
    )

    with pytest.raises(SpotifyAPIError) as exc_info:
        await client.refresh("refresh-1")

    assert "Refresh token revoked" in exc_info.value.message


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"error": "x"}),
    httpx.Response(200, text="<html>gateway</html>"),
    httpx.Response(200, json=["access_token"]),
    httpx.Response(200, json={"access_token": "new", "expires_in": "soon"}),
])
async def test_malformed_refresh_body_maps_to_spotify_error(response):
    client = SpotifyAccountsClient(
        "cid", "secret", transport=httpx.MockTransport(lambda request: response),
        base_delay_ms=0,
    )

    with pytest.raises(SpotifyAPIError) as exc_info:
        await client.refresh("refresh-1")

    assert exc_info.value.api_error_type == "invalid_response"
    assert exc_info.value.status_code == 200


async def test_create_playlist_without_id_maps_to_spotify_error():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={"name": "Crew · Theme"})

    with pytest.raises(SpotifyAPIError) as exc_info:
        await _client(handler).create_playlist("owner-1", "Crew · Theme", "desc")

    assert exc_info.value.api_error_type == "invalid_response"
    assert len(calls) == 1
