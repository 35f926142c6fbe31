"""Follow-up commands returned by ``update``.

The router never blocks or touches the outside world; it describes what
should happen next and the main loop carries it out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .events import Continuation, Event


class CommandMode(str, Enum):
    IMMEDIATE = "immediate"
    INTERACTIVE = "interactive"
    ASYNC = "async"


@dataclass(frozen=True)
class Effect:
    """Base class of all follow-up commands."""


@dataclass(frozen=True)
class RunCommand(Effect):
    args: tuple[str, ...]
    mode: CommandMode = CommandMode.ASYNC
    continuation: Continuation | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Schedule(Effect):
    delay_seconds: float
    event: Event


@dataclass(frozen=True)
class Post(Effect):
    event: Event


@dataclass(frozen=True)
class Quit(Effect):
    pass


@dataclass(frozen=True)
class Suspend(Effect):
    pass


@dataclass(frozen=True)
class EnableMouse(Effect):
    pass


def post_all(events: list[Event]) -> list[Effect]:
    return [Post(event) for event in events]
