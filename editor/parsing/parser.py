"""
High-level parsing: text → segments → classified blocks.

This is the main entry point for turning markdown text into blocks,
used by the editor session and the CLI.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence

from core.blocks.models import Block, BlockType

from ..utils.text_adapter import TextSource, prepare_text, split_lines
from .classifier import classify_span
from .segmenter import segment

logger = logging.getLogger(__name__)


def parse_blocks(
    text: TextSource,
    tab_width: int = 4,
    list_indent_width: int = 2,
) -> List[Block]:
    """
    Parse markdown text into an ordered list of Blocks.

    Pipeline: coerce/normalise → segment → classify.  Each block owns
    its content lines plus the blank lines after them (the first block
    also owns any leading blank lines), so joining ``raw_text`` gives
    back the normalised input.

    Args:
        text:              ``str`` or UTF-8 ``bytes``.
        tab_width:         Columns per tab when measuring indentation.
        list_indent_width: Indent columns per list nesting level.

    Returns:
        Blocks without ids, in reading order.

    Raises:
        InvalidInputError: If *text* is not text.
    """
    lines = split_lines(prepare_text(text))
    spans = list(segment(lines))

    blocks: List[Block] = []
    for k, span in enumerate(spans):
        own_start = 0 if k == 0 else span.start
        own_end = spans[k + 1].start if k + 1 < len(spans) else len(lines)
        raw_text = "".join(lines[own_start:own_end])
        blocks.append(
            classify_span(
                span,
                lines,
                raw_text,
                tab_width=tab_width,
                list_indent_width=list_indent_width,
            )
        )

    logger.debug("Parsed %d lines into %d blocks", len(lines), len(blocks))
    return blocks


# -----------------------------------------------------------------
# Statistics
# -----------------------------------------------------------------


@dataclass
class ParseStats:
    """Block counts for one parse."""

    total: int = 0
    malformed: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)

    def __str__(self) -> str:
        kinds = ", ".join(f"{k}={v}" for k, v in sorted(self.by_type.items()))
        return f"{self.total} blocks ({self.malformed} malformed) [{kinds}]"


def summarize_blocks(blocks: Sequence[Block]) -> ParseStats:
    stats = ParseStats(total=len(blocks))
    for block in blocks:
        key = block.type.value
        stats.by_type[key] = stats.by_type.get(key, 0) + 1
        if block.malformed:
            stats.malformed += 1
    return stats


# -----------------------------------------------------------------
# Export helpers
# -----------------------------------------------------------------


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def block_to_dict(block: Block) -> Dict[str, Any]:
    """JSON-ready representation of a block (render layer / CLI)."""
    return {
        "id": block.id,
        "type": block.type.value,
        "level": block.level,
        "text": block.text,
        "raw_text": block.raw_text,
        "source_range": list(block.line_span),
        "malformed": block.malformed,
        "issues": list(block.issues),
        "data": _plain(dataclasses.asdict(block.structured_data)),
    }


def preview_blocks(blocks: Sequence[Block]) -> str:
    """
    Format blocks as a human-readable listing for review.

    Example output::

        [block-1 HEADING h1 L1-1] "Main Title"
        [block-2 PARAGRAPH L3-3] "This is a paragraph with some text."
        [block-3 TABLE L5-8 MALFORMED] "| Name | Age |..."
          ! table row at line 8 has 3 cells, header has 2
    """
    lines: List[str] = []

    for block in blocks:
        start, end = block.line_span
        where = f" L{start + 1}-{end}" if start >= 0 else ""
        level = f" h{block.level}" if block.type == BlockType.HEADING else ""
        flag = " MALFORMED" if block.malformed else ""
        preview = block.text[:70].replace("\n", " ")
        if len(block.text) > 70:
            preview += "..."
        lines.append(f'[{block.id or "-"} {block.type.name}{level}{where}{flag}] "{preview}"')
        for issue in block.issues:
            lines.append(f"  ! {issue}")

    return "\n".join(lines)
