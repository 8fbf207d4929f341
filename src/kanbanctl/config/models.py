"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, kanbanctl.toml only contains
overrides. A fresh workspace needs no config file at all.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from kanbanctl.domain.validation import validate_column_titles

# --- kanbanctl.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    max_retries: int = Field(default=3, ge=0)


class BackupConfig(BaseModel):
    """[backup] section."""

    model_config = {"frozen": True}

    max_count: int = Field(default=10, ge=1)


class DefaultsConfig(BaseModel):
    """[defaults] section.

    Seeds the persisted configuration document the first time a workspace
    reads it. ``settings`` uses the snake_case board settings names.
    """

    model_config = {"frozen": True}

    columns: list[str] = Field(default_factory=lambda: ["To Do", "In Progress", "Done"])
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("columns")
    @classmethod
    def _columns_seed_a_valid_board(cls, columns: list[str]) -> list[str]:
        result = validate_column_titles(columns, name="defaults.columns")
        if not result.valid:
            raise ValueError("; ".join(f"{v.field}: {v.message}" for v in result.violations))
        return [title.strip() for title in columns]

