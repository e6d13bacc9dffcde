"""
Maps raw pointer and keyboard input to selection events.

Ctrl and Cmd (meta) are interchangeable so the same bindings work on
every platform.
"""

from typing import Optional

from .models import InputEvent, InputKind

_DELETE_KEYS = frozenset(["delete", "backspace"])


def event_from_pointer(
    block_id: str,
    ctrl: bool = False,
    meta: bool = False,
    shift: bool = False,
) -> InputEvent:
    """Click on *block_id*: Ctrl/Cmd toggles, Shift extends a range."""
    if ctrl or meta:
        return InputEvent(InputKind.TOGGLE_CLICK, block_id)
    if shift:
        return InputEvent(InputKind.RANGE_CLICK, block_id)
    return InputEvent(InputKind.PLAIN_CLICK, block_id)


def event_from_key(
    key: str,
    ctrl: bool = False,
    meta: bool = False,
    shift: bool = False,
) -> Optional[InputEvent]:
    """
    Key press to event, or None when the key is not bound.

    Ctrl/Cmd+A selects all, Escape clears, Delete/Backspace deletes the
    selection, Ctrl/Cmd+D duplicates and Ctrl/Cmd+Shift+M merges.
    """
    name = key.lower()
    command = ctrl or meta

    if command and name == "a":
        return InputEvent(InputKind.SELECT_ALL)
    if command and name == "d":
        return InputEvent(InputKind.DUPLICATE)
    if command and shift and name == "m":
        return InputEvent(InputKind.MERGE)
    if name in ("escape", "esc"):
        return InputEvent(InputKind.ESCAPE)
    if name in _DELETE_KEYS and not command:
        return InputEvent(InputKind.DELETE)
    return None
