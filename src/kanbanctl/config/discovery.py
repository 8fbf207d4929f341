"""Workspace discovery: where the config file and the board store live.

A workspace is a directory holding ``kanbanctl.toml`` and/or a
``.kanbanctl/`` data directory (the SQLite store plus JSON backups).
Discovery walks up from the start directory the way git finds ``.git/``,
so board commands work from any subdirectory of a workspace.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILENAME = "kanbanctl.toml"
CONFIG_ENV_VAR = "KANBANCTL_CONFIG"
DATA_DIRNAME = ".kanbanctl"
DATABASE_FILENAME = "kanbanctl.db"
BACKUPS_DIRNAME = "backups"


@dataclass(frozen=True)
class WorkspaceLocation:
    """Resolved workspace root and the config file that placed it, if any."""

    root: Path
    config_path: Path | None = None

    @property
    def data_dir(self) -> Path:
        return self.root / DATA_DIRNAME

    @property
    def database_path(self) -> Path:
        return self.data_dir / DATABASE_FILENAME

    @property
    def backups_dir(self) -> Path:
        return self.data_dir / BACKUPS_DIRNAME


def _has_board_store(directory: Path) -> bool:
    return (directory / DATA_DIRNAME / DATABASE_FILENAME).is_file()


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for kanbanctl.toml.

    ``KANBANCTL_CONFIG`` wins when set; a missing file there yields None
    rather than falling back to the walk.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def locate_workspace(
    start: Path | None = None,
    *,
    config_path: str | Path | None = None,
) -> WorkspaceLocation:
    """Resolve the workspace for a CLI invocation.

    Order: an explicit *config_path* (ignored if the file is missing), then
    ``KANBANCTL_CONFIG``, then the nearest ancestor of *start* holding
    either ``kanbanctl.toml`` or an initialised ``.kanbanctl/`` store. With
    none of those the workspace is *start* itself (default: cwd), and its
    store is created on first use.
    """
    here = (start or Path.cwd()).resolve()
    if config_path is not None:
        explicit = Path(config_path)
        if explicit.is_file():
            return WorkspaceLocation(root=explicit.parent, config_path=explicit)
        return WorkspaceLocation(root=here)

    if os.environ.get(CONFIG_ENV_VAR):
        found = find_config(here)
        if found is not None:
            return WorkspaceLocation(root=found.parent, config_path=found)
        return WorkspaceLocation(root=here)

    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return WorkspaceLocation(root=directory, config_path=candidate)
        if _has_board_store(directory):
            return WorkspaceLocation(root=directory)
    return WorkspaceLocation(root=here)
