"""Bulk actions over a selection snapshot."""

from .dispatcher import (
    ActionResult,
    BulkAction,
    BulkActionDispatcher,
    escape_block_starts,
    merge_text,
)

__all__ = [
    "ActionResult",
    "BulkAction",
    "BulkActionDispatcher",
    "escape_block_starts",
    "merge_text",
]
