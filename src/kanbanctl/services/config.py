"""ConfigService: show, update, and reset the global board defaults."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from kanbanctl.domain.errors import KanbanError
from kanbanctl.domain.factories import merge_settings
from kanbanctl.domain.models import BoardDefaults
from kanbanctl.domain.validation import ensure_valid, validate_board_fields
from kanbanctl.services.base import BaseService
from kanbanctl.services.result import ServiceResult


class ConfigService(BaseService):
    """Manages the persisted configuration document."""

    def show(self) -> ServiceResult:
        op = "show_config"
        try:
            document = self._workspace.config.get()
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"config": document.to_document(), "stored": document.updated_at is not None},
        )

    def update_defaults(
        self,
        *,
        columns: Sequence[str] | None = None,
        settings: Mapping[str, Any] | None = None,
    ) -> ServiceResult:
        """Replace default columns and/or merge default settings overrides."""
        op = "update_config"
        try:
            fields: dict[str, Any] = {}
            if columns is not None:
                fields["columns"] = list(columns)
            if settings is not None:
                fields["settings"] = dict(settings)
            # Board field rules apply; title is not part of the defaults.
            ensure_valid(
                validate_board_fields({"title": "defaults", **fields}), what="config defaults"
            )
            current = self._workspace.config.get().defaults
            defaults = BoardDefaults(
                columns=[c.strip() for c in columns] if columns is not None else current.columns,
                settings=(
                    merge_settings(current.settings, settings) if settings else current.settings
                ),
            )
            document = self._workspace.config.save_defaults(defaults)
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data={"config": document.to_document()})

    def reset(self) -> ServiceResult:
        """Drop stored defaults (after a backup) and fall back to settings."""
        op = "reset_config"
        try:
            document, backup = self._workspace.config.reset()
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "config": document.to_document(),
                "backup": str(backup) if backup else None,
            },
        )
