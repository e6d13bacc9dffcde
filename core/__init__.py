"""
Core backend for the block editor.
Block data model, ordered block document and error taxonomy only;
no parsing, selection, or rendering.
"""

from .blocks import Block, BlockDocument, BlockType, ChangeKind, ChangeSet, SourceRange
from .errors import (
    BlockEditorError,
    BlockNotFoundError,
    DuplicateBlockIdError,
    InvalidInputError,
    StaleSnapshotError,
)

__all__ = [
    "Block",
    "BlockType",
    "SourceRange",
    "BlockDocument",
    "ChangeKind",
    "ChangeSet",
    "BlockEditorError",
    "BlockNotFoundError",
    "DuplicateBlockIdError",
    "InvalidInputError",
    "StaleSnapshotError",
]
