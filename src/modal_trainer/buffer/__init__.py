"""Buffer, selection, register, and undo/redo data structures."""

from .buffer import Buffer, BufferView, EditDelta, Transaction
from .document import BufferDocument
from .registers import RegisterBank, RegisterValue
from .state import Position, Range, Selection
from .sync import BufferMirror, BufferSync
from .undo import Checkpoint, UndoEntry, UndoTimeline
from .validation import OutOfBounds, clamp_coordinates, ensure_position

__all__ = [
    "BufferDocument",
    "Position",
    "Range",
    "Selection",
    "RegisterBank",
    "RegisterValue",
    "Checkpoint",
    "UndoTimeline",
    "UndoEntry",
    "Buffer",
    "BufferView",
    "EditDelta",
    "Transaction",
    "BufferMirror",
    "BufferSync",
    "OutOfBounds",
    "clamp_coordinates",
    "ensure_position",
]
