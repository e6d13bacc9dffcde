"""
Block selection: state model, transitions and input mapping.
"""

from .engine import SelectionEngine, prune, transition
from .keymap import event_from_key, event_from_pointer
from .models import InputEvent, InputKind, SelectionMode, SelectionSnapshot, SelectionState

__all__ = [
    "SelectionEngine",
    "transition",
    "prune",
    "event_from_key",
    "event_from_pointer",
    "InputEvent",
    "InputKind",
    "SelectionMode",
    "SelectionSnapshot",
    "SelectionState",
]
