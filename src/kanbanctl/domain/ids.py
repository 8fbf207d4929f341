"""ID generation and validation contracts.

Every board, column, and card is identified by a random UUID4 string.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import uuid

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def new_id() -> str:
    """Generate a fresh entity ID."""
    return str(uuid.uuid4())


def is_valid_id(value: object) -> bool:
    """Check whether *value* is a well-formed entity ID."""
    return isinstance(value, str) and UUID_PATTERN.match(value) is not None
