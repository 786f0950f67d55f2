# tests/test_settings_store.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from taskpulse.reminders.models import NotificationSettings
from taskpulse.reminders.settings_store import NotificationSettingsStore, settings_from_dict


def test_missing_file_loads_as_none(tmp_path: Path) -> None:
    assert NotificationSettingsStore(tmp_path / "nope.json").load() is None


def test_save_then_load(tmp_path: Path) -> None:
    store = NotificationSettingsStore(tmp_path / "sub" / "notification_settings.json")

    store.save(NotificationSettings(enabled=False, webhook="https://hook.example/x"))

    assert store.load() == NotificationSettings(enabled=False, webhook="https://hook.example/x")
    assert json.loads(store.path.read_text("utf-8")) == {"enabled": False, "webhook": "https://hook.example/x"}
    assert not store.path.with_suffix(".tmp").exists()


def test_legacy_webhook_key_is_read() -> None:
    legacy = settings_from_dict({"enabled": True, "wechat_webhook": " https://old.example/hook "})
    both = settings_from_dict({"webhook": "https://new.example", "wechat_webhook": "https://old.example"})

    assert legacy.webhook == "https://old.example/hook"
    assert both.webhook == "https://new.example"


def test_odd_values_fall_back_to_defaults() -> None:
    s = settings_from_dict({"enabled": "no", "webhook": "   "})

    assert s.enabled is True
    assert s.webhook is None
    assert settings_from_dict({}) == NotificationSettings()


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '"enabled"'])
def test_unreadable_file_raises_value_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "notification_settings.json"
    path.write_text(content, "utf-8")

    with pytest.raises(ValueError):
        NotificationSettingsStore(path).load()
