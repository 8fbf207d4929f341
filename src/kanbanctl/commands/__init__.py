"""Subcommand modules for kanbanctl.

Provides register_commands() which uses deferred imports to keep
``kanbanctl --help`` fast as the codebase grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    4 groups (have subcommands) + 2 standalone commands.
    """
    # --- Groups ---
    from kanbanctl.commands.board import board
    from kanbanctl.commands.card import card
    from kanbanctl.commands.column import column
    from kanbanctl.commands.config_cmd import config_cmd

    cli.add_command(board)
    cli.add_command(card)
    cli.add_command(column)
    cli.add_command(config_cmd)

    # --- Standalone commands ---
    from kanbanctl.commands.check import check
    from kanbanctl.commands.export import export

    cli.add_command(check)
    cli.add_command(export)
