"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, TaskStatus, Priority)
- task_ordering.py: filtered/sorted list views
- blob_storage.py: SQLite key/value storage for the persisted blob
- task_store.py: in-memory store, persisted on every mutation
- task_scheduler.py: polling scheduler that sends due-date reminders
- task_api.py: high-level operations used by the rest of the app
"""
