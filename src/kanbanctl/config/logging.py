"""structlog configuration for kanbanctl.

Two output modes, both on stderr so stdout stays clean for results:
- Human (default): console renderer
- JSON (--log-json): one JSON object per line

Board operations log with shared context keys. ``op`` names the service
operation, and ``board_id`` (plus ``card_id`` / ``column_id`` where known)
names the aggregate. :func:`log_context` binds them once for every call
nested inside, and :func:`expand_kanban_error` flattens a domain error
passed as ``error=`` into its code, category, and retryability.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog

from kanbanctl.domain.errors import KanbanError

CONTEXT_KEYS = ("op", "board_id", "column_id", "card_id")


@contextmanager
def log_context(**ids: str | None) -> Iterator[None]:
    """Bind kanban context keys for every log call made inside the block.

    ``None`` values are skipped, so callers can pass optional ids as-is.
    """
    unknown = set(ids) - set(CONTEXT_KEYS)
    if unknown:
        raise ValueError(f"Unknown log context keys: {sorted(unknown)}")
    bound = {key: value for key, value in ids.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def expand_kanban_error(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace ``error=<KanbanError>`` with its serialisable fields."""
    error = event_dict.get("error")
    if isinstance(error, KanbanError):
        del event_dict["error"]
        event_dict["code"] = error.code
        event_dict["category"] = error.category
        event_dict["retryable"] = error.retryable
        event_dict.setdefault("message", error.message)
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Route kanbanctl logs to stderr.

    Args:
        verbose: DEBUG for ``kanbanctl.*`` loggers (retries, saves). When
            False, only warnings and storage errors come through.
        log_json: Use the JSON renderer instead of the console renderer.
    """
    kanban_level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        expand_kanban_error,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("kanbanctl").setLevel(kanban_level)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
