# src/taskpulse/reminders/channels.py

"""
Notification channels.

- SystemToastChannel: desktop notification through plyer (blocking call, run in a worker thread)
- WebhookChannel: group-bot style webhook, POST {"msgtype": "text", "text": {"content": ...}}

Both raise on failure. Timeouts are enforced here for the webhook transport and again
by the dispatcher around every attempt.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from plyer import notification

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class WebhookError(RuntimeError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Webhook API error: {status_code} - {body}")
        self.status_code = status_code
        self.body = body


class SystemToastChannel:
    name = "system"

    def __init__(self, *, app_name: str = "taskpulse", display_seconds: int = 10) -> None:
        self._app_name = app_name
        self._display_seconds = display_seconds

    def _show(self, title: str, body: str) -> None:
        notification.notify(
            title=title,
            message=body,
            app_name=self._app_name,
            timeout=self._display_seconds,
        )

    async def send(self, title: str, body: str) -> None:
        await asyncio.to_thread(self._show, title, body)


class WebhookChannel:
    name = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url or not url.strip():
            raise ValueError("webhook url is required")
        self._url = url.strip()
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    @staticmethod
    def build_payload(title: str, body: str) -> dict[str, object]:
        return {
            "msgtype": "text",
            "text": {"content": f"{title}\n\n{body}"},
        }

    async def send(self, title: str, body: str) -> None:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self._url, json=self.build_payload(title, body))

        if not response.is_success:
            text = response.text or "Unknown error"
            raise WebhookError(response.status_code, text[:500])

        logger.debug("Webhook delivered status=%s", response.status_code)
