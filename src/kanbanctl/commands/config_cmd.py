"""Command group: stored defaults for new boards."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from kanbanctl.commands._base import KanbanGroup, enum_choice
from kanbanctl.domain.types import Theme

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.group(
    "config",
    cls=KanbanGroup,
    examples="""\
  kanbanctl config show
  kanbanctl config set --column Todo --column Doing --column Done
  kanbanctl config set --theme dark --enforce-wip
  kanbanctl config reset""",
)
def config_cmd() -> None:
    """Show and change the defaults applied to new boards."""


@config_cmd.command("show")
@click.pass_obj
def show_cmd(app: AppContext) -> None:
    """Show the effective defaults."""
    from kanbanctl.services.config import ConfigService

    app.emit(ConfigService(app.workspace).show())


@config_cmd.command("set")
@click.option("--column", "columns", multiple=True, help="Default column title (repeatable).")
@click.option("--theme", type=enum_choice(Theme), default=None)
@click.option(
    "--allow-wip-exceeding/--enforce-wip",
    "allow_wip_exceeding",
    default=None,
    help="Default WIP enforcement for new boards.",
)
@click.option(
    "--show-card-count/--hide-card-count",
    "show_card_count",
    default=None,
    help="Default card count display for new boards.",
)
@click.pass_obj
def set_cmd(
    app: AppContext,
    columns: tuple[str, ...],
    theme: str | None,
    allow_wip_exceeding: bool | None,
    show_card_count: bool | None,
) -> None:
    """Change default columns or settings. Unset options keep their value."""
    from kanbanctl.services.config import ConfigService

    settings: dict[str, Any] = {}
    if theme is not None:
        settings["theme"] = theme
    if allow_wip_exceeding is not None:
        settings["allow_wip_limit_exceeding"] = allow_wip_exceeding
    if show_card_count is not None:
        settings["show_card_count"] = show_card_count
    if not columns and not settings:
        raise click.UsageError("Nothing to change. Pass --column or a settings option.")
    app.emit(
        ConfigService(app.workspace).update_defaults(
            columns=list(columns) if columns else None,
            settings=settings or None,
        )
    )


@config_cmd.command("reset")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def reset_cmd(app: AppContext, yes: bool) -> None:
    """Drop stored defaults (a backup is written first)."""
    from kanbanctl.services.config import ConfigService

    if not yes:
        click.confirm("Reset stored defaults?", abort=True)
    app.emit(ConfigService(app.workspace).reset())
