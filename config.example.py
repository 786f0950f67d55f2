# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

Webhook URLs usually embed a bot key, so they are not configured here at all:
set them at runtime with /webhook (stored in notification_settings.json).
"""

ENV_VARS = {
    # App / logging
    "TASKPULSE_APP_NAME": "App name shown on desktop notifications (default: taskpulse).",
    "TASKPULSE_LOG_LEVEL": "Logging level (default: INFO).",
    # Connectors
    "TASKPULSE_CONSOLE_ENABLED": "Enable console connector (true/false, default: true).",
    # Paths (gitignored)
    "TASKPULSE_DATA_DIR": "Local data directory (default: .local/taskpulse).",
    "TASKPULSE_TASKS_DB_PATH": (
        "SQLite file with tasks and the delivery ledger (default: <data_dir>/todo.db)."
    ),
    "TASKPULSE_NOTIFICATION_SETTINGS_PATH": (
        "Notification settings JSON (default: <data_dir>/notification_settings.json)."
    ),
    # Reminder engine
    "TASKPULSE_REMINDER_TICK_SECONDS": "Seconds between reminder checks (default: 30, min 0.5).",
    "TASKPULSE_LEDGER_CLEANUP_EVERY_TICKS": "Run ledger cleanup every N ticks (default: 120).",
    "TASKPULSE_LEDGER_RETENTION_DAYS": "Keep delivery records this many days (default: 30).",
    "TASKPULSE_CHANNEL_TIMEOUT_SECONDS": "Per-channel send timeout (default: 10).",
    "TASKPULSE_NOTIFICATION_TITLE": "Notification title (default: Task reminder).",
}
