# src/taskpulse/reminders/settings_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import NotificationSettings

logger = logging.getLogger(__name__)


def _clean_webhook(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    return s or None


def settings_from_dict(data: dict[str, Any]) -> NotificationSettings:
    """
    Build settings from the stored JSON object.

    `wechat_webhook` is the key older front-ends wrote; `webhook` wins when both exist.
    """
    enabled_raw = data.get("enabled", True)
    enabled = enabled_raw if isinstance(enabled_raw, bool) else True
    webhook = _clean_webhook(data.get("webhook"))
    if webhook is None:
        webhook = _clean_webhook(data.get("wechat_webhook"))
    return NotificationSettings(enabled=enabled, webhook=webhook)


class NotificationSettingsStore:
    """
    JSON file with the user's notification preferences.

    load():
    - None when nothing was saved yet (callers treat that as enabled, no webhook)
    - ValueError when the file exists but cannot be understood
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> NotificationSettings | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to read notification settings {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Notification settings {self._path} must be a JSON object")
        return settings_from_dict(data)

    def save(self, settings: NotificationSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"enabled": bool(settings.enabled), "webhook": settings.webhook}
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(OSError):
            # Webhook URLs often embed a bot key.
            os.chmod(self._path, 0o600)
        logger.info("Saved notification settings enabled=%s webhook=%s", settings.enabled, bool(settings.webhook))
