"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority)
- task_store.py: SQLite-backed storage + query/update helpers
- time_windows.py: today / tomorrow / this-month boundaries (server local time)
- reminder_scheduler.py: daily digest of tasks due tomorrow
"""
