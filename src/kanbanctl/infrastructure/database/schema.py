"""SQLAlchemy Core table definitions for the kanbanctl database.

Each board is one row holding the whole board document as JSON. The
``version`` column is the optimistic-concurrency token compared on every
write. ``title`` is copied out of the document so board title uniqueness
is enforced by the database itself.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

boards = Table(
    "boards",
    metadata,
    Column("id", Text, primary_key=True),
    Column("title", Text, nullable=False, unique=True),
    Column("version", Integer, nullable=False, default=1, server_default="1"),
    Column("document", Text, nullable=False),  # JSON board document
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

Index("ix_boards_created_at", boards.c.created_at)

# Singleton row (id = 1) holding the global configuration document.
app_config = Table(
    "app_config",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("document", Text, nullable=False),  # JSON config document
    Column("updated_at", Text, nullable=False),
)

CONFIG_ROW_ID = 1
