"""
Typed document blocks and the ordered block document.
"""

from .document import BlockChange, BlockDocument, ChangeKind, ChangeSet
from .models import (
    Block,
    BlockquoteData,
    BlockType,
    CodeData,
    ComponentData,
    HeadingData,
    ListData,
    ListItem,
    ParagraphData,
    RuleData,
    SourceRange,
    TableData,
    TableRow,
)

__all__ = [
    "Block",
    "BlockType",
    "SourceRange",
    "HeadingData",
    "ParagraphData",
    "RuleData",
    "CodeData",
    "BlockquoteData",
    "TableData",
    "TableRow",
    "ListData",
    "ListItem",
    "ComponentData",
    "BlockDocument",
    "BlockChange",
    "ChangeKind",
    "ChangeSet",
]
