"""
Editor session: one document, one selection, one dispatcher.

Ties the parsing pipeline, the block document, the selection engine and
the bulk action dispatcher together behind a small API the editing
surface (or the CLI) drives:

1. **Load** markdown text or a file; parse it into blocks and swap them
   into the document in one step (the selection resets to EMPTY).
2. **Handle** input events: clicks, keys and bulk actions.
3. **Edit** single blocks in place, or add paragraphs after a block.
4. **Serialise** the document back to markdown.

Usage::

    from editor.session import EditorConfig, EditorSession

    session = EditorSession(EditorConfig(list_indent_width=4))
    result = session.load("# Title\\n\\nSome text")
    print(result.summary())
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from core.blocks.document import BlockDocument
from core.blocks.models import Block, BlockType, ParagraphData

from .actions.dispatcher import BulkActionDispatcher
from .parsing.parser import ParseStats, parse_blocks, summarize_blocks
from .selection.engine import SelectionEngine
from .selection.models import InputEvent, SelectionState
from .utils.text_adapter import TextSource, read_text_file, split_lines

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------


@dataclass
class EditorConfig:
    """
    Tuneable parameters for an editor session.

    Attributes:
        tab_width:              Columns per tab when measuring indentation.
        list_indent_width:      Indent columns per list nesting level.
        reject_stale_snapshots: Raise on bulk actions whose selection
                                snapshot predates the document revision.
        disable_tqdm:           Suppress progress bars (CLI).
    """

    tab_width: int = 4
    list_indent_width: int = 2
    reject_stale_snapshots: bool = False
    disable_tqdm: bool = False


# ------------------------------------------------------------------
# Result
# ------------------------------------------------------------------


@dataclass
class LoadResult:
    """Summary returned after a document load."""

    source: str = "<text>"
    line_count: int = 0
    stats: ParseStats = field(default_factory=ParseStats)
    revision: int = 0
    elapsed_seconds: float = 0.0

    @property
    def block_count(self) -> int:
        return self.stats.total

    @property
    def malformed_count(self) -> int:
        return self.stats.malformed

    def summary(self) -> str:
        """Format a human-readable summary of the load."""
        kinds = "\n".join(
            f"    {name:<16} {count}" for name, count in sorted(self.stats.by_type.items())
        )
        return (
            f"{'=' * 50}\n"
            f"LOADED {self.source}\n"
            f"{'=' * 50}\n"
            f"  Lines:     {self.line_count}\n"
            f"  Blocks:    {self.block_count}\n"
            f"  Malformed: {self.malformed_count}\n"
            f"  Revision:  {self.revision}\n"
            f"  Parse time: {self.elapsed_seconds * 1000:.1f} ms\n"
            f"  By type:\n{kinds}\n"
            f"{'=' * 50}"
        )


# ------------------------------------------------------------------
# Session
# ------------------------------------------------------------------


class EditorSession:
    """
    One editing session over one markdown document.

    All components are created here and owned by the session; there is
    no shared module-level state between sessions.
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()
        self.document = BlockDocument()
        self.dispatcher = BulkActionDispatcher(
            self.document,
            reject_stale_snapshots=self.config.reject_stale_snapshots,
        )
        self.selection = SelectionEngine(self.document, self.dispatcher)

    @property
    def state(self) -> SelectionState:
        return self.selection.state

    @property
    def blocks(self) -> List[Block]:
        return list(self.document.all())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _parse(self, text: TextSource) -> List[Block]:
        return parse_blocks(
            text,
            tab_width=self.config.tab_width,
            list_indent_width=self.config.list_indent_width,
        )

    def load(self, text: TextSource, source: str = "<text>") -> LoadResult:
        """
        Replace the document with the blocks parsed from *text*.

        Parsing happens before the document is touched, so when it
        raises the previous document (and selection) stay as they were.

        Raises:
            InvalidInputError: If *text* is not text.
        """
        t0 = time.perf_counter()
        blocks = self._parse(text)
        self.document.replace_all(blocks)

        result = LoadResult(
            source=source,
            line_count=len(split_lines("".join(b.raw_text for b in blocks))),
            stats=summarize_blocks(blocks),
            revision=self.document.revision,
            elapsed_seconds=time.perf_counter() - t0,
        )
        logger.info(
            "Loaded %s: %d blocks (%d malformed) in %.1f ms",
            source,
            result.block_count,
            result.malformed_count,
            result.elapsed_seconds * 1000,
        )
        return result

    def load_file(self, path: Union[str, Path]) -> LoadResult:
        """
        Load a markdown file.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidInputError: If the file is not UTF-8 text.
        """
        return self.load(read_text_file(path), source=str(path))

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def handle(self, event: InputEvent) -> SelectionState:
        return self.selection.handle(event)

    # ------------------------------------------------------------------
    # Single-block editing
    # ------------------------------------------------------------------

    def edit_block(self, block_id: str, text: TextSource) -> List[Block]:
        """
        Replace a block's content with the blocks parsed from *text*.

        One parsed block replaces the original in place and keeps its
        id.  Several: the first replaces in place, the rest are inserted
        after it.  No blocks (blank text) removes the original.

        Returns:
            The blocks now standing where the original was.

        Raises:
            BlockNotFoundError: If *block_id* is not in the document.
            InvalidInputError:  If *text* is not text.
        """
        self.document.get(block_id)
        parsed = self._parse(text)
        for block in parsed:
            block.source_range = None

        if not parsed:
            self.document.remove([block_id])
            logger.debug("Edit emptied %s, block removed", block_id)
            return []

        with self.document.batch():
            first = self.document.replace(block_id, parsed[0])
            result = [first]
            after = block_id
            for block in parsed[1:]:
                result.append(self.document.insert_after(after, block))
                after = block.id

        logger.debug("Edited %s into %d block(s)", block_id, len(result))
        return result

    def insert_paragraph_after(self, block_id: Optional[str], text: TextSource = "") -> Block:
        """
        Add a new block after *block_id* (at the start when None) and
        select it.

        Blank *text* gives an empty paragraph.  Text that parses as
        another kind of block (e.g. a heading) keeps that kind; only the
        first parsed block is used.

        Raises:
            BlockNotFoundError: If *block_id* is not in the document.
        """
        if block_id is not None:
            self.document.get(block_id)

        parsed = self._parse(text)
        if parsed:
            block = parsed[0]
            block.source_range = None
        else:
            block = _empty_paragraph()

        self.document.insert_after(block_id, block)
        self.selection.select(block.id)
        return block

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_markdown(self) -> str:
        return self.document.to_markdown()

    def close(self) -> None:
        self.selection.close()

    def __repr__(self) -> str:
        return f"EditorSession({self.document!r}, {self.selection.state!r})"


def _empty_paragraph() -> Block:
    return Block(type=BlockType.PARAGRAPH, raw_text="", structured_data=ParagraphData(text=""))
