"""
Selection state and input events.

Both are immutable: every transition produces a new SelectionState, so
consumers holding an old state never see it change underneath them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from core.blocks.document import BlockDocument


class SelectionMode(Enum):
    EMPTY = "empty"
    SINGLE = "single"
    MULTI = "multi"


@dataclass(frozen=True)
class SelectionState:
    """
    Current block selection.

    ``anchor_id`` is where a range extends from; ``focus_id`` is the most
    recently touched block.  Both are None exactly when the mode is EMPTY.
    """

    mode: SelectionMode = SelectionMode.EMPTY
    selected_ids: FrozenSet[str] = frozenset()
    anchor_id: Optional[str] = None
    focus_id: Optional[str] = None

    @classmethod
    def empty(cls) -> "SelectionState":
        return cls()

    @classmethod
    def single(cls, block_id: str) -> "SelectionState":
        return cls(SelectionMode.SINGLE, frozenset([block_id]), block_id, block_id)

    @classmethod
    def multi(cls, ids, anchor_id: str, focus_id: str) -> "SelectionState":
        return cls(SelectionMode.MULTI, frozenset(ids), anchor_id, focus_id)

    @property
    def is_empty(self) -> bool:
        return self.mode == SelectionMode.EMPTY

    def __contains__(self, block_id: object) -> bool:
        return block_id in self.selected_ids

    def __len__(self) -> int:
        return len(self.selected_ids)

    def ordered_ids(self, order: Sequence[str]) -> List[str]:
        """Selected ids in the given document order."""
        return [i for i in order if i in self.selected_ids]

    def __repr__(self) -> str:
        if self.is_empty:
            return "SelectionState(EMPTY)"
        ids = ",".join(sorted(self.selected_ids))
        return (
            f"SelectionState({self.mode.name} {{{ids}}}, "
            f"anchor={self.anchor_id}, focus={self.focus_id})"
        )


@dataclass(frozen=True)
class SelectionSnapshot:
    """Selected ids in document order, frozen at a document revision."""

    ids: Tuple[str, ...]
    revision: int

    @classmethod
    def from_state(cls, state: SelectionState, document: "BlockDocument") -> "SelectionSnapshot":
        return cls(tuple(state.ordered_ids(document.ids())), document.revision)

    def __len__(self) -> int:
        return len(self.ids)


class InputKind(Enum):
    """Discrete inputs the selection engine reacts to."""

    PLAIN_CLICK = "plain_click"
    TOGGLE_CLICK = "toggle_click"
    RANGE_CLICK = "range_click"
    SELECT_ALL = "select_all"
    ESCAPE = "escape"
    DELETE = "delete"
    DUPLICATE = "duplicate"
    MERGE = "merge"


# Events that carry a target block id
POINTER_KINDS = frozenset(
    [InputKind.PLAIN_CLICK, InputKind.TOGGLE_CLICK, InputKind.RANGE_CLICK]
)


@dataclass(frozen=True)
class InputEvent:
    kind: InputKind
    block_id: Optional[str] = None

    def __post_init__(self):
        if self.kind in POINTER_KINDS and self.block_id is None:
            raise ValueError(f"{self.kind.value} needs a block id")

    def __repr__(self) -> str:
        target = f" {self.block_id}" if self.block_id else ""
        return f"InputEvent({self.kind.value}{target})"
