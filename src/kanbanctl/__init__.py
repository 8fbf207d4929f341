"""kanbanctl: kanban board aggregate engine and CLI."""

__version__ = "0.1.0"
