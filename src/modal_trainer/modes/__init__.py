"""Mode manager, pending-key state, and dispatch logic."""

from .base_mode import (
    EditorMode,
    KeyInput,
    Mode,
    ModeBus,
    ModeContext,
    ModeResult,
    UnrecognizedInput,
)
from .keymap_helpers import key_to_token, token_to_key
from .pending import CountParser, KeymapMode, PendingDraft
from .normal_mode import NormalMode
from .insert_mode import InsertMode
from .select_mode import SelectMode
from .repeat import RepeatRecorder
from .mode_manager import ModeManager, create_interpreter

__all__ = [
    "EditorMode",
    "KeyInput",
    "Mode",
    "ModeBus",
    "ModeContext",
    "ModeResult",
    "UnrecognizedInput",
    "key_to_token",
    "token_to_key",
    "CountParser",
    "KeymapMode",
    "PendingDraft",
    "NormalMode",
    "InsertMode",
    "SelectMode",
    "RepeatRecorder",
    "ModeManager",
    "create_interpreter",
]
