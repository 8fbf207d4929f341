"""Click building blocks shared by the kanbanctl command groups.

:class:`KanbanGroup` and :class:`KanbanCommand` accept an ``examples``
string printed by an eager ``--examples`` flag, so ``--help`` stays short.
Example text uses ``<board-id>``-style placeholders; the printout ends
with the command that lists real ids for each placeholder it contains.

:func:`enum_choice` builds option types from the domain vocabularies
(priority, theme, sort fields, export format) so the CLI offers exactly
the values the validation layer accepts.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import click

ID_PLACEHOLDERS: dict[str, str] = {
    "<board-id>": "kanbanctl board list",
    "<column-id>": "kanbanctl column list <board-id>",
    "<card-id>": "kanbanctl card list <board-id>",
}


def enum_choice(vocabulary: type[StrEnum]) -> click.Choice:
    """Case-insensitive choice over a domain StrEnum's values."""
    return click.Choice([str(member) for member in vocabulary], case_sensitive=False)


def format_examples(command_path: str, examples: str) -> str:
    lines = [f"Examples for '{command_path}':", "", examples]
    hints = [
        f"  {placeholder:<12} {lister}"
        for placeholder, lister in ID_PLACEHOLDERS.items()
        if placeholder in examples
    ]
    if hints:
        lines += ["", "Find ids with:", *hints]
    return "\n".join(lines)


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(format_examples(ctx.command_path, examples))
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class KanbanCommand(click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class KanbanGroup(click.Group):
    """Group with an optional ``--examples`` flag.

    Subcommands default to :class:`KanbanCommand`, so they take
    ``examples=`` without an explicit ``cls=``.
    """

    command_class = KanbanCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
