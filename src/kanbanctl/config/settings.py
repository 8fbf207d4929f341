"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``KANBANCTL_*`` prefix (``__`` for nested sections)
  3. TOML file: ``kanbanctl.toml`` discovered via walk-up
  4. Code defaults: baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reads the file that :func:`~kanbanctl.config.discovery.locate_workspace`
found while resolving the workspace root.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from kanbanctl.config.discovery import WorkspaceLocation, locate_workspace
from kanbanctl.config.models import BackupConfig, DefaultsConfig, StoreConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``kanbanctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class KanbanSettings(BaseSettings):
    """Unified settings for kanbanctl.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.  Passed to
    :class:`~kanbanctl.infrastructure.workspace.Workspace` explicitly;
    there is no module-level settings singleton.

    Attributes:
        workspace_root: Directory holding ``.kanbanctl/`` (parent of
            ``kanbanctl.toml``, or CWD if no config found).
        config_path: The TOML file that was loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KANBANCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (not in TOML; derived from config location) ---
    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    store: StoreConfig = Field(default_factory=StoreConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @property
    def location(self) -> WorkspaceLocation:
        return WorkspaceLocation(root=self.workspace_root, config_path=self.config_path)

    @property
    def data_dir(self) -> Path:
        return self.location.data_dir

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> KanbanSettings:
        """Construct settings from CLI invocation.

        The workspace comes from :func:`locate_workspace` (explicit
        *config_path*, env var, or walk-up). An explicit *workspace_root*
        pins the root while still reading any config found for it. CLI
        flags are merged as highest-priority overrides.

        Raises :class:`click.ClickException` when the TOML file does not
        parse or its values fail validation.
        """
        location = locate_workspace(workspace_root, config_path=config_path or None)
        if workspace_root is not None:
            location = WorkspaceLocation(root=workspace_root, config_path=location.config_path)

        _tls.toml_path = location.config_path
        try:
            return cls(
                workspace_root=location.root,
                config_path=location.config_path,
                **cli_flags,
            )
        except ValidationError as exc:
            source = location.config_path or "environment"
            msg = f"Invalid configuration ({source}): {exc}"
            raise click.ClickException(msg) from exc
        finally:
            _tls.toml_path = None
