"""Keymap value and key-combo dispatch tables."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

Chord = tuple[str, ...]

_NAMED_KEYS = {
    "esc": "ESC",
    "escape": "ESC",
    "enter": "ENTER",
    "return": "ENTER",
    "tab": "TAB",
    "shift+tab": "SHIFT_TAB",
    "backspace": "BACKSPACE",
    "delete": "DELETE",
    "up": "UP",
    "down": "DOWN",
    "left": "LEFT",
    "right": "RIGHT",
    "home": "HOME",
    "end": "END",
    "pgup": "PGUP",
    "pgdown": "PGDOWN",
    "space": " ",
}


def normalize_key_name(name: str) -> str:
    """Map config spellings (``ctrl+z``, ``esc``) onto reader key tokens."""
    if len(name) == 1:
        return name
    lowered = name.strip().lower()
    if lowered in _NAMED_KEYS:
        return _NAMED_KEYS[lowered]
    for prefix, token in (("ctrl+", "CTRL_"), ("alt+", "ALT_"), ("shift+", "SHIFT_")):
        if lowered.startswith(prefix):
            rest = normalize_key_name(lowered[len(prefix):])
            return token + rest.upper()
    return name


def _coerce_chords(raw: object) -> tuple[Chord, ...]:
    """Accept ``"q"``, ``["q", "ctrl+c"]`` or ``[["g", "f"], "F"]``."""
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        return ()
    chords: list[Chord] = []
    for item in raw:
        if isinstance(item, str) and item:
            chords.append((normalize_key_name(item),))
        elif isinstance(item, (list, tuple)) and item and all(isinstance(k, str) and k for k in item):
            chords.append(tuple(normalize_key_name(k) for k in item))
    return tuple(chords)


@dataclass(frozen=True)
class Keymap:
    """Immutable mapping from action name to the chords that trigger it."""

    bindings: Mapping[str, tuple[Chord, ...]]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object], base: Keymap | None = None) -> Keymap:
        merged: dict[str, tuple[Chord, ...]] = dict(base.bindings) if base is not None else {}
        for action, value in raw.items():
            chords = _coerce_chords(value)
            if chords:
                merged[str(action)] = chords
        return cls(MappingProxyType(merged))

    def chords(self, action: str) -> tuple[Chord, ...]:
        return self.bindings.get(action, ())

    def matches(self, key: str, action: str) -> bool:
        """Return whether ``key`` alone triggers ``action``."""
        return (key,) in self.chords(action)

    def sequences(self) -> list[tuple[str, Chord]]:
        """Return multi-key chords in declaration order."""
        return [
            (action, chord)
            for action, chords in self.bindings.items()
            for chord in chords
            if len(chord) > 1
        ]

    def describe(self, action: str) -> str:
        return "/".join(" ".join(chord) for chord in self.chords(action))


@dataclass(frozen=True)
class KeyComboBinding:
    """Keymap action bound to a handler, optionally guarded by ``when``."""

    action: str
    handler: Callable[[], object]
    when: Callable[[], bool] | None = None


class KeyComboRegistry:
    """Small key-dispatch table resolving single-key chords through a keymap.

    Several bindings may share a key; the first registered binding whose
    guard holds wins.
    """

    def __init__(self, keymap: Keymap) -> None:
        self._keymap = keymap
        self._handlers: dict[str, list[KeyComboBinding]] = {}

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        for chord in self._keymap.chords(binding.action):
            if len(chord) == 1:
                self._handlers.setdefault(chord[0], []).append(binding)
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            self.register_binding(binding)
        return self

    def actions_for(self, key: str) -> Iterable[str]:
        return [binding.action for binding in self._handlers.get(key, ())]

    def dispatch(self, key: str) -> tuple[bool, object]:
        """Invoke the first applicable handler for ``key``.

        Returns ``(matched, handler_result)``.
        """
        for binding in self._handlers.get(key, ()):
            if binding.when is not None and not binding.when():
                continue
            return True, binding.handler()
        return False, None
