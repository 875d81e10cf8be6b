"""SuperTask: a personal task manager with assistant-driven ordering and due-date reminders."""

__version__ = "0.1.0"
