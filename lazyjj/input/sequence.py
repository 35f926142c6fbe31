"""Multi-key chord recognition with a cancellable timeout.

The matcher is either ``Idle`` or ``Collecting`` a prefix. Each consumed key
bumps a generation counter and returns a ``Schedule`` effect for a
``SequenceTimeout`` carrying that generation; a timeout whose generation is
not current was cancelled by a later key and is ignored.

Ties are resolved by declaration order: when several candidates remain and
at least one is fully typed, the first fully typed binding (in the order the
bindings were given) fires. A longer chord that extends a shorter bound one
is therefore unreachable.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..effects import Schedule
from ..events import SequenceTimeout
from .key_registry import Chord

DEFAULT_SEQUENCE_TIMEOUT_SECONDS = 1.0


@dataclass(frozen=True)
class SequenceBinding:
    action: str
    chord: Chord
    applicable: Callable[[], bool] | None = None

    def is_applicable(self) -> bool:
        return self.applicable is None or bool(self.applicable())


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Collecting:
    prefix: Chord
    candidates: tuple[SequenceBinding, ...]
    deadline: float


SequenceMatchState = Idle | Collecting
IDLE = Idle()


@dataclass(frozen=True)
class SequenceResult:
    """Outcome of feeding one key.

    ``consumed`` keys must not be routed anywhere else. ``action`` is the
    binding to invoke, if any; ``schedule`` is the re-armed timeout.
    """

    consumed: bool
    action: SequenceBinding | None = None
    schedule: Schedule | None = None


class SequenceMatcher:
    def __init__(
        self,
        bindings: Sequence[SequenceBinding],
        timeout_seconds: float = DEFAULT_SEQUENCE_TIMEOUT_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._bindings = tuple(binding for binding in bindings if binding.chord)
        self.timeout_seconds = timeout_seconds
        self._monotonic = monotonic
        self.state: SequenceMatchState = IDLE
        self.generation = 0

    @property
    def bindings(self) -> tuple[SequenceBinding, ...]:
        return self._bindings

    @property
    def active(self) -> bool:
        return isinstance(self.state, Collecting)

    def reset(self) -> None:
        self.state = IDLE
        self.generation += 1

    def pending_candidates(self) -> tuple[SequenceBinding, ...]:
        if isinstance(self.state, Collecting):
            return self.state.candidates
        return ()

    def feed(self, key: str, now: float | None = None) -> SequenceResult:
        if now is None:
            now = self._monotonic()
        if isinstance(self.state, Collecting):
            prefix = self.state.prefix
            pool = self.state.candidates
        else:
            prefix = ()
            pool = tuple(b for b in self._bindings if b.chord[0] == key and b.is_applicable())
            if not pool:
                return SequenceResult(consumed=False)

        depth = len(prefix)
        typed = (*prefix, key)
        remaining = tuple(b for b in pool if len(b.chord) > depth and b.chord[depth] == key)
        if not remaining:
            self.reset()
            return SequenceResult(consumed=True)

        for binding in remaining:
            if len(binding.chord) == len(typed):
                self.reset()
                return SequenceResult(consumed=True, action=binding)

        self.generation += 1
        self.state = Collecting(typed, remaining, now + self.timeout_seconds)
        return SequenceResult(
            consumed=True,
            schedule=Schedule(self.timeout_seconds, SequenceTimeout(self.generation)),
        )

    def timeout(self, generation: int) -> bool:
        """Handle a timeout; return ``True`` when it reset a live sequence."""
        if generation != self.generation or not isinstance(self.state, Collecting):
            return False
        self.reset()
        return True
