"""
taskpulse: personal task manager backend with a reminder engine.

Subpackages:
- tasks/: task storage (SQLite) and small helpers
- reminders/: reminder extraction, delivery ledger, dispatch and the periodic scheduler
- core/: ports (Protocols) and the AppState container
- cli/, connectors/: composition root, slash commands and the console REPL
"""

__version__ = "0.1.0"
