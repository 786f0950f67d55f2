"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskList, TaskStatus, Priority)
- task_store.py: SQLite-backed storage + delete listeners
- task_api.py: small high-level helpers used by the console commands
"""
