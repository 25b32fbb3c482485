"""Resilient Spotify Clients — httpx wrappers for the Web API and the accounts service.

Invariants:
    - Rate limits (429): wait for Retry-After (or backoff), then retry, max_retries times
    - Connection failures (request never reached Spotify): exponential backoff with jitter
    - Everything else (4xx, 5xx, timeouts, malformed 2xx bodies): immediate
      SpotifyAPIError, no retry; a playlist create the server already saw
      must not be repeated
    - add_tracks sends at most 100 URIs per request (Spotify limit)

Design Decisions:
    - One httpx.AsyncClient per request: clients are short-lived, one per playlist,
      and tests inject an httpx.MockTransport through `transport`
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
"""

import asyncio
import logging
import random
from dataclasses import dataclass

import httpx

from aux_rounds.core.errors import ErrorContext, SpotifyAPIError
from aux_rounds.core.repository_protocols import RemotePlaylist

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.spotify.com/v1"
DEFAULT_ACCOUNTS_URL = "https://accounts.spotify.com/api/token"


@dataclass(frozen=True)
class SpotifyTokens:
    """Result of a refresh grant."""
    access_token: str
    refresh_token: str
    expires_in: int


def _retry_after_ms(response: httpx.Response) -> int | None:
    header = response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return int(float(header) * 1000)
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {response.status_code}"
    if isinstance(error, str):
        return body.get("error_description") or error
    return f"HTTP {response.status_code}"


class _ResilientHTTP:
    """Shared retry/backoff/error-mapping for both Spotify endpoints."""

    def __init__(
        self,
        timeout_seconds: int = 30,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 30_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._transport = transport

    async def _send(
        self, method: str, url: str, *, context: ErrorContext | None = None,
        **kwargs,
    ) -> httpx.Response:
        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds, transport=self._transport,
                ) as client:
                    response = await client.request(method, url, **kwargs)
            except httpx.ConnectError as e:
                if attempt >= self.max_retries:
                    raise SpotifyAPIError(
                        f"Connection failed: {e}", "connection_error",
                        context=context,
                    )
                await self._sleep_backoff(attempt, None)
                continue
            except httpx.TimeoutException:
                raise SpotifyAPIError("Request timed out", "timeout", context=context)
            except httpx.HTTPError as e:
                raise SpotifyAPIError(str(e), "transport_error", context=context)

            if response.status_code == 429:
                retry_after = _retry_after_ms(response)
                if attempt >= self.max_retries:
                    raise SpotifyAPIError(
                        "Rate limit exceeded", "rate_limit",
                        status_code=429, retry_after_ms=retry_after,
                        context=context,
                    )
                await self._sleep_backoff(attempt, retry_after)
                continue

            if response.is_error:
                kind = "server_error" if response.status_code >= 500 else "client_error"
                raise SpotifyAPIError(
                    _error_message(response), kind,
                    status_code=response.status_code, context=context,
                )
            return response

        raise SpotifyAPIError("Retries exhausted", "retries_exhausted", context=context)

    @staticmethod
    def _parse(
        response: httpx.Response, required: str, context: ErrorContext | None,
    ) -> dict:
        """Decode a 2xx JSON object; malformed bodies map to SpotifyAPIError."""
        try:
            body = response.json()
        except ValueError:
            raise SpotifyAPIError(
                "Response body is not JSON", "invalid_response",
                status_code=response.status_code, context=context,
            )
        if not isinstance(body, dict) or not body.get(required):
            raise SpotifyAPIError(
                f"Response is missing '{required}'", "invalid_response",
                status_code=response.status_code, context=context,
            )
        return body

    async def _sleep_backoff(self, attempt: int, retry_after_ms: int | None) -> None:
        if retry_after_ms is not None:
            delay_ms = min(retry_after_ms, self.max_delay_ms)
        else:
            delay_ms = min(self.base_delay_ms * (2 ** attempt), self.max_delay_ms)
            delay_ms = delay_ms * random.uniform(0.75, 1.25)
        logger.warning(
            "Spotify request retry %d/%d in %dms",
            attempt + 1, self.max_retries, int(delay_ms),
        )
        await asyncio.sleep(delay_ms / 1000)


class SpotifyClient(_ResilientHTTP):
    """Spotify Web API calls made on behalf of one user (one access token)."""

    MAX_TRACKS_PER_REQUEST = 100

    def __init__(
        self, access_token: str, api_url: str = DEFAULT_API_URL, **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_url = api_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {access_token}"}

    async def create_playlist(
        self,
        owner_spotify_id: str,
        name: str,
        description: str,
        is_public: bool = False,
    ) -> RemotePlaylist:
        response = await self._send(
            "POST", f"{self.api_url}/users/{owner_spotify_id}/playlists",
            headers=self._headers,
            json={"name": name, "description": description, "public": is_public},
        )
        body = self._parse(response, "id", None)
        return RemotePlaylist(
            id=body["id"],
            url=(body.get("external_urls") or {}).get("spotify"),
        )

    async def add_tracks(self, playlist_id: str, uris: list[str]) -> None:
        for start in range(0, len(uris), self.MAX_TRACKS_PER_REQUEST):
            chunk = uris[start:start + self.MAX_TRACKS_PER_REQUEST]
            await self._send(
                "POST", f"{self.api_url}/playlists/{playlist_id}/tracks",
                headers=self._headers, json={"uris": chunk},
            )


class SpotifyAccountsClient(_ResilientHTTP):
    """Token refresh against the Spotify accounts service."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str = DEFAULT_ACCOUNTS_URL,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url

    async def refresh(
        self, refresh_token: str, context: ErrorContext | None = None,
    ) -> SpotifyTokens:
        """Exchange a refresh token; keeps the old refresh token if none is returned."""
        response = await self._send(
            "POST", self.token_url, context=context,
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        body = self._parse(response, "access_token", context)
        try:
            expires_in = int(body.get("expires_in", 3600))
        except (TypeError, ValueError):
            raise SpotifyAPIError(
                f"Invalid expires_in: {body.get('expires_in')!r}",
                "invalid_response", status_code=response.status_code,
                context=context,
            )
        return SpotifyTokens(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token") or refresh_token,
            expires_in=expires_in,
        )
