"""Hint box listing the chords that can still complete a pending sequence."""

from __future__ import annotations

from ..input.sequence import SequenceBinding
from .base import BOLD, DIM, RESET, Surface, box


class SequenceOverlay(Surface):
    surface_id = "sequence"

    def __init__(self, prefix: tuple[str, ...], candidates: tuple[SequenceBinding, ...]) -> None:
        super().__init__()
        self.prefix = prefix
        self.candidates = candidates

    def _lines(self) -> list[str]:
        depth = len(self.prefix)
        return [
            f"{DIM}{' '.join(self.prefix)}{RESET} {BOLD}{' '.join(binding.chord[depth:])}{RESET} {binding.action}"
            for binding in self.candidates
        ]

    def render(self, width: int, height: int) -> str:
        return box("", self._lines(), width)

    def size_hint(self, width: int, height: int) -> tuple[int, int]:
        longest = max(
            (len(" ".join(b.chord)) + len(b.action) + 2 for b in self.candidates),
            default=10,
        )
        return min(width, longest + 2), min(height, len(self.candidates) + 2)
