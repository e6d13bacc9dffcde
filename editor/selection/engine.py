"""
Selection state machine.

``transition`` is a pure function of (state, event, document order) and
covers every event that only moves the selection.  ``SelectionEngine``
binds it to one BlockDocument: it feeds the live block order in, routes
delete/duplicate/merge through the bulk action dispatcher and keeps the
selection consistent with document change notifications.
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from core.blocks.document import BlockDocument, ChangeSet

from .models import (
    POINTER_KINDS,
    InputEvent,
    InputKind,
    SelectionMode,
    SelectionSnapshot,
    SelectionState,
)

if TYPE_CHECKING:
    from ..actions.dispatcher import BulkActionDispatcher

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------


def _plain_click(state: SelectionState, block_id: str, order: Sequence[str]) -> SelectionState:
    return SelectionState.single(block_id)


def _toggle_click(state: SelectionState, block_id: str, order: Sequence[str]) -> SelectionState:
    if block_id not in state.selected_ids:
        if state.is_empty:
            return SelectionState.multi([block_id], block_id, block_id)
        return SelectionState.multi(state.selected_ids | {block_id}, state.anchor_id, block_id)

    remaining = state.selected_ids - {block_id}
    if not remaining:
        return SelectionState.empty()

    anchor = state.anchor_id
    focus = state.focus_id
    if anchor == block_id:
        first = next((i for i in order if i in remaining), min(remaining))
        anchor = focus if focus in remaining else first
    if focus == block_id:
        focus = anchor
    return SelectionState.multi(remaining, anchor, focus)


def _range_click(state: SelectionState, block_id: str, order: Sequence[str]) -> SelectionState:
    anchor = state.anchor_id
    if state.is_empty or anchor not in order:
        return SelectionState.single(block_id)
    if anchor == block_id:
        return SelectionState.single(anchor)

    a = order.index(anchor)
    b = order.index(block_id)
    lo, hi = min(a, b), max(a, b)
    return SelectionState.multi(order[lo : hi + 1], anchor, block_id)


def _select_all(state: SelectionState, order: Sequence[str]) -> SelectionState:
    if not order:
        return SelectionState.empty()
    return SelectionState.multi(order, order[0], order[-1])


_POINTER_TRANSITIONS = {
    InputKind.PLAIN_CLICK: _plain_click,
    InputKind.TOGGLE_CLICK: _toggle_click,
    InputKind.RANGE_CLICK: _range_click,
}


def transition(state: SelectionState, event: InputEvent, order: Sequence[str]) -> SelectionState:
    """
    Next selection state for *event* given the document order.

    Pointer events naming an id missing from *order* leave the state
    unchanged.  DELETE always ends EMPTY; DUPLICATE and MERGE do not move
    the selection here (the engine sets the merged block afterwards).
    """
    order = list(order)
    if event.kind in POINTER_KINDS:
        if event.block_id not in order:
            logger.debug("Ignoring %r: block not in document", event)
            return state
        return _POINTER_TRANSITIONS[event.kind](state, event.block_id, order)
    if event.kind == InputKind.SELECT_ALL:
        return _select_all(state, order)
    if event.kind in (InputKind.ESCAPE, InputKind.DELETE):
        return SelectionState.empty()
    return state


def prune(state: SelectionState, order: Sequence[str]) -> SelectionState:
    """Drop ids no longer in *order*, repairing anchor and focus."""
    if state.is_empty:
        return state
    remaining = [i for i in order if i in state.selected_ids]
    if len(remaining) == len(state.selected_ids):
        return state
    if not remaining:
        return SelectionState.empty()

    anchor = state.anchor_id if state.anchor_id in remaining else remaining[0]
    focus = state.focus_id if state.focus_id in remaining else remaining[-1]
    if state.mode == SelectionMode.SINGLE:
        return SelectionState.single(anchor)
    return SelectionState.multi(remaining, anchor, focus)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class SelectionEngine:
    """
    Selection bound to one document.

    Subscribes to the document on construction: a reload resets the
    selection to EMPTY and removals prune it, so ``state`` never names a
    block that is not in the document.
    """

    def __init__(self, document: BlockDocument, dispatcher: "BulkActionDispatcher"):
        self.document = document
        self.dispatcher = dispatcher
        self._state = SelectionState.empty()
        document.subscribe(self._on_change)

    @property
    def state(self) -> SelectionState:
        return self._state

    def close(self) -> None:
        self.document.unsubscribe(self._on_change)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle(self, event: InputEvent) -> SelectionState:
        """Apply one input event and return the new state."""
        if event.kind == InputKind.DELETE:
            return self.delete_selected()
        if event.kind == InputKind.DUPLICATE:
            return self.duplicate_selected()
        if event.kind == InputKind.MERGE:
            return self.merge_selected()
        return self._apply(event)

    def plain_click(self, block_id: str) -> SelectionState:
        return self._apply(InputEvent(InputKind.PLAIN_CLICK, block_id))

    def toggle_click(self, block_id: str) -> SelectionState:
        return self._apply(InputEvent(InputKind.TOGGLE_CLICK, block_id))

    def range_click(self, block_id: str) -> SelectionState:
        return self._apply(InputEvent(InputKind.RANGE_CLICK, block_id))

    def select_all(self) -> SelectionState:
        return self._apply(InputEvent(InputKind.SELECT_ALL))

    def escape(self) -> SelectionState:
        return self._apply(InputEvent(InputKind.ESCAPE))

    def select(self, block_id: Optional[str]) -> SelectionState:
        """Programmatic SINGLE selection (EMPTY for None)."""
        if block_id is None:
            self._state = SelectionState.empty()
            return self._state
        return self.plain_click(block_id)

    # ------------------------------------------------------------------
    # Bulk actions
    # ------------------------------------------------------------------

    def delete_selected(self) -> SelectionState:
        if self._state.is_empty:
            return self._state
        self.dispatcher.delete(self._snapshot())
        self._state = SelectionState.empty()
        return self._state

    def duplicate_selected(self) -> SelectionState:
        if not self._state.is_empty:
            self.dispatcher.duplicate(self._snapshot())
        return self._state

    def merge_selected(self) -> SelectionState:
        if self._state.is_empty:
            return self._state
        result = self.dispatcher.merge(self._snapshot())
        if result.created_ids:
            self._state = SelectionState.single(result.created_ids[0])
        return self._state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot.from_state(self._state, self.document)

    def _apply(self, event: InputEvent) -> SelectionState:
        before = self._state
        self._state = transition(before, event, self.document.ids())
        if self._state != before:
            logger.debug("%r: %r -> %r", event, before, self._state)
        return self._state

    def _on_change(self, change_set: ChangeSet) -> None:
        if change_set.reloaded:
            if not self._state.is_empty:
                logger.debug("Document reloaded, selection cleared")
            self._state = SelectionState.empty()
        elif change_set.removed_ids:
            self._state = prune(self._state, self.document.ids())

    def __repr__(self) -> str:
        return f"SelectionEngine({self._state!r})"
