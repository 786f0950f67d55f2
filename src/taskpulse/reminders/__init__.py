"""
Reminder scheduling and notification dispatch.

Components:
- models.py: occurrences, delivery records, settings, per-channel and per-pass outcomes
- extractor.py: task reminder blob -> ReminderOccurrence list
- resolver.py: due and not-yet-delivered occurrences
- ledger.py: SQLite dedup store + retention cleanup
- channels.py: system toast and webhook sinks
- dispatcher.py: send one occurrence everywhere, then record it
- scheduler.py: periodic driver + serialized manual check
- runner.py: scheduler thread with its own event loop
- settings_store.py: notification settings JSON file
"""
