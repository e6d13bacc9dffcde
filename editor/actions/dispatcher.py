"""
Bulk actions over a snapshot of the current selection.

The dispatcher never reads live selection state: callers hand it an
immutable SelectionSnapshot taken before anything mutates.  Ids in the
snapshot that have since left the document are skipped, not raised,
unless the dispatcher runs with strict snapshot checking.

Every action runs inside one ``BlockDocument.batch()``, so subscribers
see a single atomic change set per action.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Sequence

from core.blocks.document import BlockDocument
from core.blocks.models import Block, BlockType, ParagraphData
from core.errors import StaleSnapshotError

from ..parsing.parser import parse_blocks
from ..parsing.segmenter import line_kind
from ..selection.models import SelectionSnapshot

logger = logging.getLogger(__name__)


class BulkAction(Enum):
    DELETE = "delete"
    DUPLICATE = "duplicate"
    MERGE = "merge"


@dataclass
class ActionResult:
    """
    Outcome of one bulk action.

    ``affected_ids`` are the live ids the action operated on,
    ``created_ids`` the ids of blocks it added and ``skipped_ids`` the
    snapshot ids that were no longer in the document.
    """

    action: BulkAction
    affected_ids: List[str] = field(default_factory=list)
    created_ids: List[str] = field(default_factory=list)
    skipped_ids: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.affected_ids or self.created_ids)


# ---------------------------------------------------------------------------
# Merge text
# ---------------------------------------------------------------------------


def escape_block_starts(lines: Sequence[str]) -> List[str]:
    """
    Backslash-escape lines so the whole run parses as one paragraph.

    A table start is broken by escaping its separator line, everything
    else by escaping the line that opens the block.  Escaped lines can
    only ever start a table, and their separators are escaped in turn,
    so each line is escaped at most twice.

    After an escape the scan resumes on the line above it, which may
    now start a table.  Component openers look further ahead, so passes
    repeat until one makes no escape.
    """
    lines = list(lines)
    escaped = True
    while escaped:
        escaped = False
        i = 0
        while i < len(lines):
            kind = line_kind(lines, i)
            if kind is None or kind == BlockType.PARAGRAPH:
                i += 1
                continue
            target = i + 1 if kind == BlockType.TABLE else i
            lines[target] = "\\" + lines[target]
            escaped = True
            i = max(0, target - 1)
    return lines


def merge_text(raw_texts: Sequence[str]) -> str:
    """
    Join block sources into the text of a single paragraph.

    Lines are stripped, blank lines dropped, and block-starting lines
    escaped.
    """
    lines: List[str] = []
    for raw in raw_texts:
        for line in raw.strip().split("\n"):
            line = line.strip()
            if line:
                lines.append(line)
    return "\n".join(escape_block_starts(lines))


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class BulkActionDispatcher:
    """
    Applies DELETE, DUPLICATE and MERGE to one BlockDocument.

    Args:
        document:               The document to mutate.
        reject_stale_snapshots: Raise StaleSnapshotError for a snapshot
                                taken at an older revision instead of
                                skipping the ids that went missing.
    """

    def __init__(self, document: BlockDocument, reject_stale_snapshots: bool = False):
        self.document = document
        self.reject_stale_snapshots = reject_stale_snapshots
        self._handlers: Dict[BulkAction, Callable[[List[str], ActionResult], None]] = {
            BulkAction.DELETE: self._delete,
            BulkAction.DUPLICATE: self._duplicate,
            BulkAction.MERGE: self._merge,
        }

    def dispatch(self, action: BulkAction, snapshot: SelectionSnapshot) -> ActionResult:
        """
        Run *action* on the live blocks named by *snapshot*.

        Raises:
            StaleSnapshotError: strict mode only, when the snapshot was
                taken at a different document revision.
        """
        doc = self.document
        if self.reject_stale_snapshots and snapshot.revision != doc.revision:
            raise StaleSnapshotError(snapshot.revision, doc.revision)

        result = ActionResult(action=action)
        order = {block_id: i for i, block_id in enumerate(doc.ids())}
        live = [i for i in snapshot.ids if i in order]
        result.skipped_ids = [i for i in snapshot.ids if i not in order]
        if result.skipped_ids:
            logger.debug(
                "%s: skipping %d stale id(s): %s",
                action.value,
                len(result.skipped_ids),
                ", ".join(result.skipped_ids),
            )
        live.sort(key=order.__getitem__)

        if live:
            self._handlers[action](live, result)
        logger.debug(
            "%s: %d affected, %d created",
            action.value,
            len(result.affected_ids),
            len(result.created_ids),
        )
        return result

    def delete(self, snapshot: SelectionSnapshot) -> ActionResult:
        return self.dispatch(BulkAction.DELETE, snapshot)

    def duplicate(self, snapshot: SelectionSnapshot) -> ActionResult:
        return self.dispatch(BulkAction.DUPLICATE, snapshot)

    def merge(self, snapshot: SelectionSnapshot) -> ActionResult:
        return self.dispatch(BulkAction.MERGE, snapshot)

    # ------------------------------------------------------------------
    # Handlers (ids are live and in document order)
    # ------------------------------------------------------------------

    def _delete(self, ids: List[str], result: ActionResult) -> None:
        with self.document.batch():
            removed = self.document.remove(ids)
        result.affected_ids = [b.id for b in removed]

    def _duplicate(self, ids: List[str], result: ActionResult) -> None:
        doc = self.document
        with doc.batch():
            for block_id in ids:
                copy = doc.insert_after(block_id, doc.get(block_id).copy())
                result.created_ids.append(copy.id)
        result.affected_ids = list(ids)

    def _merge(self, ids: List[str], result: ActionResult) -> None:
        if len(ids) < 2:
            logger.debug("merge: fewer than two live blocks, nothing to do")
            return

        doc = self.document
        text = merge_text([doc.get(i).raw_text for i in ids])
        merged = _paragraph_block(text)

        with doc.batch():
            doc.insert_after(ids[0], merged)
            doc.remove(ids)
        result.affected_ids = list(ids)
        result.created_ids = [merged.id]


def _paragraph_block(text: str) -> Block:
    if not text:
        # Only blank blocks were merged
        return Block(type=BlockType.PARAGRAPH, raw_text="", structured_data=ParagraphData(text=""))
    blocks = parse_blocks(text + "\n\n")
    if len(blocks) != 1 or blocks[0].type != BlockType.PARAGRAPH:
        raise RuntimeError(f"merged text did not parse as one paragraph: {blocks!r}")
    block = blocks[0]
    block.source_range = None
    return block
