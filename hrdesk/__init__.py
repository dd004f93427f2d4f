"""HR Desk: task, notification and activity backend for HR teams."""

__version__ = "1.0.0"
