"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from kanbanctl.output.console import create_console, get_output, style_for_priority

if TYPE_CHECKING:
    from rich.console import Console

    from kanbanctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.data.get("content") is not None:
        return str(result.data["content"])

    items = result.data.get("items") or result.data.get("columns")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    for key in ("board", "card", "column"):
        entity_id = _extract_id(result.data.get(key))
        if entity_id:
            return entity_id
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        val = item.get("id")
        return str(val) if val is not None else ""
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="kb.ok")
    op = Text(f"  {result.op}", style="kb.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="kb.key")
    if key == "id" or key.endswith("_id") or key.endswith("Id"):
        v = Text(str(value), style="kb.id")
    elif key in ("backup", "path"):
        v = Text(str(value), style="kb.path")
    elif key == "title":
        v = Text(str(value), style="kb.title")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _priority_text(priority: str) -> Text:
    return Text(priority, style=style_for_priority(priority))


def _card_table(cards: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table for a list of camelCase card documents."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="kb.id", no_wrap=True)
    table.add_column("Title", style="kb.title")
    table.add_column("Priority")
    table.add_column("Pos", justify="right")
    table.add_column("Assignee")
    table.add_column("Tags")
    if verbose:
        table.add_column("Column", style="dim", no_wrap=True)
        table.add_column("Updated", style="dim")

    for card in cards:
        row: list[Any] = [
            str(card.get("id", "")),
            str(card.get("title", "")),
            _priority_text(str(card.get("priority", ""))),
            str(card.get("position", "")),
            str(card.get("assignee") or ""),
            ", ".join(card.get("tags", [])),
        ]
        if verbose:
            row.append(str(card.get("columnId", "")))
            row.append(str(card.get("updatedAt", "")))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="kb.error")
    op = Text(f"  {result.op}", style="kb.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))
    if err:
        console.print(Text(f"  code: {err.code}", style="dim"))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update/delete/move results for boards, cards, and columns."""
    _status_line(console, result)
    d = result.data
    for entity in ("board", "card", "column"):
        payload = d.get(entity)
        if isinstance(payload, dict):
            for key in ("id", "title", "columnId", "position"):
                if key in payload:
                    _field(console, key, payload[key])
    for key in ("board_id", "source_id", "id", "title", "column_id", "backup"):
        if key in d:
            _field(console, key, d[key])
    if "columns" in d and isinstance(d["columns"], list):
        order = " → ".join(str(col.get("title", "")) for col in d["columns"])
        _field(console, "order", order)


# ── Board renderers ───────────────────────────────────────────────────


def _render_board(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a board as a table with one table column per board column."""
    board = result.data.get("board", {})
    columns = sorted(board.get("columns", []), key=lambda col: col.get("position", 0))
    cards = board.get("cards", [])
    show_count = board.get("settings", {}).get("showCardCount", True)

    table = Table(
        title=f"{escape(str(board.get('title', 'Untitled')))}  [dim]{board.get('id', '')}[/dim]",
        show_header=True,
        show_lines=False,
        expand=False,
    )
    stacks: list[list[dict[str, Any]]] = []
    for col in columns:
        stack = sorted(
            (card for card in cards if card.get("columnId") == col.get("id")),
            key=lambda card: card.get("position", 0),
        )
        stacks.append(stack)
        header = escape(str(col.get("title", "")))
        limit = col.get("wipLimit")
        if show_count:
            header += f" ({len(stack)}/{limit})" if limit else f" ({len(stack)})"
        over = limit is not None and len(stack) > limit
        table.add_column(header, header_style="kb.wip.over" if over else "bold")

    depth = max((len(stack) for stack in stacks), default=0)
    for i in range(depth):
        row: list[Any] = []
        for stack in stacks:
            if i < len(stack):
                card = stack[i]
                priority = str(card.get("priority", ""))
                cell = Text(str(card.get("title", "")))
                cell.append(f" [{priority}]", style=style_for_priority(priority))
                if verbose:
                    cell.append(f"\n{card.get('id', '')}", style="dim")
                row.append(cell)
            else:
                row.append("")
        table.add_row(*row)

    console.print(table)
    if board.get("description"):
        console.print(Text(f"  {board['description']}", style="dim"))


def _render_board_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a board listing."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="kb.id", no_wrap=True)
    table.add_column("Title", style="kb.title")
    table.add_column("Columns", justify="right")
    table.add_column("Cards", justify="right")
    table.add_column("Updated", style="dim")
    for item in items:
        table.add_row(
            str(item.get("id", "")),
            str(item.get("title", "")),
            str(item.get("column_count", 0)),
            str(item.get("card_count", 0)),
            str(item.get("updated_at", "")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} boards")


def _render_integrity(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render audit results with issues grouped by category."""
    issues = result.data.get("issues", [])
    count = result.data.get("count", len(issues))

    if count == 0:
        console.print("[kb.ok]OK[/kb.ok]  No issues found.")
        return

    severity_styles = {"error": "kb.error", "warning": "kb.warning"}

    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        cat = str(issue.get("category", "unknown"))
        by_category.setdefault(cat, []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            msg = issue.get("message", "")
            entity_id = issue.get("entity_id")
            prefix = f"[{style}]{sev}[/{style}]" if style else sev
            eid = f" \\[{entity_id}]" if entity_id and verbose else ""
            console.print(f"  {prefix}{eid}: {escape(str(msg))}")

    errors = result.data.get("error_count", 0)
    warnings = result.data.get("warning_count", count - errors)
    console.print(f"\n{errors} errors, {warnings} warnings")


def _render_stats(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("board_id", "title", "total_cards", "completed_cards", "overdue_cards"):
        _field(console, key, d.get(key))
    _field(console, "completion_rate", f"{d.get('completion_rate', 0.0):.0%}")
    priorities = d.get("by_priority", {})
    if priorities:
        _field(console, "by_priority", ", ".join(f"{k}={v}" for k, v in priorities.items()))

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Column", style="kb.title")
    table.add_column("Cards", justify="right")
    table.add_column("WIP limit", justify="right")
    for col in d.get("columns", []):
        count = Text(str(col.get("card_count", 0)))
        if col.get("over_limit"):
            count.stylize("kb.wip.over")
        limit = col.get("wip_limit")
        table.add_row(str(col.get("title", "")), count, "" if limit is None else str(limit))
    console.print(table)


def _render_export(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Print exported content verbatim (no markup processing)."""
    output_file = result.data.get("output_file")
    if output_file:
        _status_line(console, result)
        _field(console, "format", result.data.get("format"))
        _field(console, "output_file", output_file)
        return
    console.print(result.data.get("content", ""), markup=False, soft_wrap=True)


# ── Card and column renderers ─────────────────────────────────────────


def _render_card_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_card_table(items, verbose=verbose))
    console.print(f"\n{result.data.get('count', len(items))} cards")


def _render_card(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render one card as a panel with its metadata."""
    card = result.data.get("card", {})
    lines: list[str] = []
    for key in ("priority", "assignee", "dueDate", "columnId", "position", "createdAt", "updatedAt"):
        val = card.get(key)
        if val is not None:
            lines.append(f"{key}: {val}")
    tags = card.get("tags", [])
    if tags:
        lines.append(f"tags: {', '.join(tags)}")
    content = "\n".join(lines)
    if card.get("description"):
        content += f"\n\n{card['description'].strip()}"

    title = f"{card.get('id', '?')} — {card.get('title', 'Untitled')}"
    style = style_for_priority(str(card.get("priority", "")))
    console.print(Panel(content, title=title, border_style=style or "dim", expand=False))


def _render_column_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Pos", justify="right")
    table.add_column("ID", style="kb.id", no_wrap=True)
    table.add_column("Title", style="kb.title")
    table.add_column("Cards", justify="right")
    table.add_column("WIP limit", justify="right")
    table.add_column("Color")
    for item in items:
        limit = item.get("wipLimit")
        table.add_row(
            str(item.get("position", "")),
            str(item.get("id", "")),
            str(item.get("title", "")),
            str(item.get("cardCount", "")),
            "" if limit is None else str(limit),
            str(item.get("color", "")),
        )
    console.print(table)


# ── Generic renderer ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations
    "create_board": _render_mutation,
    "update_board": _render_mutation,
    "delete_board": _render_mutation,
    "restore_board": _render_mutation,
    "duplicate_board": _render_mutation,
    "import_board": _render_mutation,
    "add_card": _render_mutation,
    "update_card": _render_mutation,
    "delete_card": _render_mutation,
    "move_card": _render_mutation,
    "add_column": _render_mutation,
    "update_column": _render_mutation,
    "delete_column": _render_mutation,
    "reorder_columns": _render_mutation,
    # Reads
    "get_board": _render_board,
    "query_boards": _render_board_table,
    "get_card": _render_card,
    "list_cards": _render_card_table,
    "query_cards": _render_card_table,
    "search_cards": _render_card_table,
    "list_columns": _render_column_table,
    # Board-wide
    "validate_board_integrity": _render_integrity,
    "get_board_stats": _render_stats,
    "export_board": _render_export,
}
