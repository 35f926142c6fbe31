"""Input-layer public API.

Split between low-level terminal decoding (``read_event``) and the key
matching primitives the router builds its tables from.
"""

from .key_registry import Chord, KeyComboBinding, KeyComboRegistry, Keymap, normalize_key_name
from .reader import ESC_SEQUENCE_TIMEOUT_MS, _PENDING_BYTES, decode_sgr_mouse, read_event
from .sequence import Collecting, Idle, SequenceBinding, SequenceMatcher, SequenceResult

__all__ = [
    "read_event",
    "decode_sgr_mouse",
    "_PENDING_BYTES",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "Chord",
    "Keymap",
    "KeyComboBinding",
    "KeyComboRegistry",
    "normalize_key_name",
    "SequenceBinding",
    "SequenceMatcher",
    "SequenceResult",
    "Idle",
    "Collecting",
]
