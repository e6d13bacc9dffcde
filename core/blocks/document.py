"""
Block model: the canonical ordered document of blocks.

The BlockDocument owns block order and id assignment.  Every mutation
runs to completion synchronously and is published to subscribers as a
single ChangeSet, so a renderer can update incrementally (cost
proportional to the edit, not the document) and never observes a
half-applied edit.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from core.errors import BlockNotFoundError, DuplicateBlockIdError

from .models import Block

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Change notifications
# ---------------------------------------------------------------------------


class ChangeKind(Enum):
    ADDED = "added"
    REMOVED = "removed"
    REPLACED = "replaced"


@dataclass(frozen=True)
class BlockChange:
    """
    One per-block change.

    ``index`` is valid when changes are applied in order: for ADDED it is
    the position after insertion, for REMOVED the position just before
    removal, for REPLACED the (unchanged) position.
    """

    kind: ChangeKind
    block_id: str
    index: int
    block: Block


@dataclass(frozen=True)
class ChangeSet:
    """All changes produced by one mutation (or one ``batch()``)."""

    revision: int
    changes: Tuple[BlockChange, ...]
    reloaded: bool = False

    def ids(self, kind: ChangeKind) -> List[str]:
        return [c.block_id for c in self.changes if c.kind == kind]

    @property
    def added_ids(self) -> List[str]:
        return self.ids(ChangeKind.ADDED)

    @property
    def removed_ids(self) -> List[str]:
        return self.ids(ChangeKind.REMOVED)

    @property
    def replaced_ids(self) -> List[str]:
        return self.ids(ChangeKind.REPLACED)


ChangeListener = Callable[[ChangeSet], None]


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class BlockDocument:
    """
    Ordered, id-addressable collection of blocks.

    Ids are ``"<prefix>-<n>"`` with *n* monotonically increasing; an id
    is never handed out twice for the lifetime of the document, even
    after the block holding it is removed or the document is reloaded.
    """

    def __init__(
        self,
        blocks: Optional[Iterable[Block]] = None,
        id_prefix: str = "block",
    ):
        self._blocks: List[Block] = []
        self._by_id: Dict[str, Block] = {}
        self._issued: Set[str] = set()
        self._next_id = 1
        self._id_prefix = id_prefix

        self.revision = 0
        self._listeners: List[ChangeListener] = []

        # Batch state
        self._depth = 0
        self._pending: List[BlockChange] = []
        self._pending_reload = False

        if blocks is not None:
            self.replace_all(blocks)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def get(self, block_id: str) -> Block:
        """Return the block with *block_id* or raise BlockNotFoundError."""
        try:
            return self._by_id[block_id]
        except KeyError:
            raise BlockNotFoundError(block_id) from None

    def all(self) -> Tuple[Block, ...]:
        """All blocks in reading order."""
        return tuple(self._blocks)

    def ids(self) -> List[str]:
        return [b.id for b in self._blocks]

    def index_of(self, block_id: str) -> int:
        block = self.get(block_id)
        return self._blocks.index(block)

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(tuple(self._blocks))

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._by_id

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @contextmanager
    def batch(self):
        """
        Group several mutations into one atomic change set.

        Nested batches fold into the outermost one; the revision is
        bumped and listeners notified once, when it exits.
        """
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._flush()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert_after(self, after_id: Optional[str], block: Block) -> Block:
        """
        Insert *block* right after *after_id* (at the start when None).

        Assigns a fresh id when the block has none.

        Raises:
            BlockNotFoundError:    *after_id* is not in the document.
            DuplicateBlockIdError: the block's id is in use or was issued
                                   before (ids are never reused).
        """
        position = 0 if after_id is None else self.index_of(after_id) + 1
        with self.batch():
            self._assign_id(block)
            self._blocks.insert(position, block)
            self._by_id[block.id] = block
            self._record(ChangeKind.ADDED, block, position)
        logger.debug("Inserted %s at %d", block.id, position)
        return block

    def remove(self, block_ids: Iterable[str]) -> List[Block]:
        """
        Remove every block whose id is in *block_ids*, in one step.

        Ids not present are ignored.  Survivors keep their relative
        order.  Returns the removed blocks in former document order.
        """
        wanted = set(block_ids)
        removed: List[Block] = []
        survivors: List[Block] = []

        with self.batch():
            for block in self._blocks:
                if block.id in wanted:
                    self._record(ChangeKind.REMOVED, block, len(survivors))
                    removed.append(block)
                else:
                    survivors.append(block)

            if removed:
                self._blocks = survivors
                for block in removed:
                    del self._by_id[block.id]

        if removed:
            logger.debug("Removed %d block(s)", len(removed))
        return removed

    def replace(self, block_id: str, block: Block) -> Block:
        """
        Swap the content of *block_id* for *block*, keeping the id and
        position.  The block revision is bumped.
        """
        position = self.index_of(block_id)
        previous = self._blocks[position]

        block.id = block_id
        block.revision = previous.revision + 1
        with self.batch():
            self._blocks[position] = block
            self._by_id[block_id] = block
            self._record(ChangeKind.REPLACED, block, position)
        return block

    def replace_all(self, blocks: Iterable[Block]) -> List[Block]:
        """
        Replace the whole document with *blocks* (a fresh parse result).

        Every incoming block receives a new id; ids from the previous
        document are never remapped onto the new blocks.  The change set
        is flagged ``reloaded`` so holders of old ids can invalidate them.
        """
        incoming = list(blocks)
        with self.batch():
            for block in self._blocks:
                self._record(ChangeKind.REMOVED, block, 0)
            self._blocks = []
            self._by_id = {}

            for position, block in enumerate(incoming):
                block.id = None
                self._assign_id(block)
                self._blocks.append(block)
                self._by_id[block.id] = block
                self._record(ChangeKind.ADDED, block, position)

            self._pending_reload = True

        logger.debug("Document reloaded with %d block(s)", len(incoming))
        return incoming

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_markdown(self) -> str:
        """
        Serialise back to markdown text.

        Parsed blocks already own their separating blank lines; blocks
        created by edits may not, so every block but the last is padded
        to end with a blank line.
        """
        parts: List[str] = []
        last = len(self._blocks) - 1
        for i, block in enumerate(self._blocks):
            text = block.raw_text
            if i < last:
                if not text.endswith("\n"):
                    text += "\n"
                if not text.endswith("\n\n"):
                    text += "\n"
            parts.append(text)
        return "".join(parts)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _assign_id(self, block: Block) -> None:
        if block.id is None:
            block.id = self._generate_id()
        elif block.id in self._by_id:
            raise DuplicateBlockIdError(f"Block id already in use: {block.id!r}")
        elif block.id in self._issued:
            raise DuplicateBlockIdError(f"Block id was already issued: {block.id!r}")
        self._issued.add(block.id)

    def _generate_id(self) -> str:
        while True:
            candidate = f"{self._id_prefix}-{self._next_id}"
            self._next_id += 1
            if candidate not in self._issued:
                return candidate

    def _record(self, kind: ChangeKind, block: Block, index: int) -> None:
        self._pending.append(BlockChange(kind, block.id, index, block))

    def _flush(self) -> None:
        if not self._pending and not self._pending_reload:
            return

        self.revision += 1
        change_set = ChangeSet(
            revision=self.revision,
            changes=tuple(self._pending),
            reloaded=self._pending_reload,
        )
        self._pending = []
        self._pending_reload = False

        for listener in list(self._listeners):
            try:
                listener(change_set)
            except Exception as e:
                logger.warning("Change listener %r failed: %s", listener, e)

    def __repr__(self) -> str:
        return f"BlockDocument(blocks={len(self._blocks)}, revision={self.revision})"
