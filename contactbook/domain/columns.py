from __future__ import annotations

from enum import Enum


class SortColumn(str, Enum):
    """Columns a listing may be ordered by. Only these ever reach ORDER BY."""

    ID = "id"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    EMAIL = "email"
    MOBILE = "mobile"


DEFAULT_SORT_COLUMN = SortColumn.LAST_NAME


def resolve_sort_column(requested) -> SortColumn:
    """Map untrusted input onto the allowlist; anything unknown gets the default."""
    if isinstance(requested, SortColumn):
        return requested
    if isinstance(requested, str):
        for col in SortColumn:
            if col.value == requested:
                return col
    return DEFAULT_SORT_COLUMN
