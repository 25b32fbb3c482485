"""Expo Push Client — sends push messages through the Expo push service.

Invariants:
    - Only Expo tokens (ExponentPushToken[...] / ExpoPushToken[...]) are sent
    - At most 100 messages per request (Expo limit)
    - A failed chunk is logged and skipped; later chunks are still sent
    - Ticket errors are logged, never raised

Design Decisions:
    - Fire-and-forget: callers get the tickets back for logging only
"""

import logging
import re
from typing import Any

import httpx

from aux_rounds.core.errors import PushDeliveryError
from aux_rounds.core.notification_copy import NotificationPayload

logger = logging.getLogger(__name__)

DEFAULT_PUSH_URL = "https://exp.host/--/api/v2/push/send"
MAX_MESSAGES_PER_REQUEST = 100

_EXPO_TOKEN = re.compile(r"^Expo(nent)?PushToken\[.+\]$")


def is_expo_push_token(token: str) -> bool:
    return bool(_EXPO_TOKEN.match(token or ""))


def build_messages(
    tokens: list[str], payload: NotificationPayload,
) -> list[dict[str, Any]]:
    return [
        {
            "to": token,
            "sound": "default",
            "title": payload.title,
            "body": payload.body,
            "data": payload.data,
            "priority": "high",
        }
        for token in tokens
        if is_expo_push_token(token)
    ]


def chunk_messages(messages: list[dict], size: int = MAX_MESSAGES_PER_REQUEST):
    return [messages[i:i + size] for i in range(0, len(messages), size)]


class ExpoPushClient:
    """Thin httpx wrapper around the Expo push endpoint."""

    def __init__(
        self,
        push_url: str = DEFAULT_PUSH_URL,
        access_token: str | None = None,
        timeout_seconds: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.push_url = push_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if access_token:
            self._headers["Authorization"] = f"Bearer {access_token}"

    async def send_chunk(self, messages: list[dict]) -> list[dict]:
        """POST one chunk; returns Expo tickets."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport,
            ) as client:
                response = await client.post(
                    self.push_url, json=messages, headers=self._headers,
                )
        except httpx.HTTPError as e:
            raise PushDeliveryError(str(e))
        if response.is_error:
            raise PushDeliveryError(
                response.text[:200] or f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError:
            raise PushDeliveryError(
                f"Non-JSON response: {response.text[:200]}",
                status_code=response.status_code,
            )
        tickets = body.get("data", []) if isinstance(body, dict) else None
        if not isinstance(tickets, list):
            raise PushDeliveryError(
                "Unexpected response shape", status_code=response.status_code,
            )
        return tickets

    async def send(
        self, tokens: list[str], payload: NotificationPayload,
    ) -> list[dict]:
        messages = build_messages(tokens, payload)
        if not messages:
            logger.info("No valid Expo tokens among %d tokens", len(tokens))
            return []

        tickets: list[dict] = []
        for chunk in chunk_messages(messages):
            try:
                tickets.extend(await self.send_chunk(chunk))
            except PushDeliveryError as e:
                logger.error(
                    "Error sending push chunk: %s", e.message,
                    extra={"error_code": e.code},
                )

        errors = [t for t in tickets if t.get("status") == "error"]
        if errors:
            logger.warning("Push ticket errors: %s", errors)
        return tickets
