"""Event variants consumed by the router.

Every input source (terminal reader, timers, command workers, scripts and
surfaces posting intents) produces one of the frozen dataclasses below. The
set is closed: ``handler_name`` maps each variant to the router method that
handles it and rejects anything else, so adding a variant without a handler
fails loudly instead of being silently dropped.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from .errors import LazyJJError


class MouseKind(str, Enum):
    PRESS = "press"
    RELEASE = "release"
    MOTION = "motion"
    WHEEL_UP = "wheel_up"
    WHEEL_DOWN = "wheel_down"


class MouseButton(str, Enum):
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"
    NONE = "none"


@dataclass(frozen=True)
class Event:
    """Base class of all events."""


# -- input --------------------------------------------------------------


@dataclass(frozen=True)
class KeyPress(Event):
    key: str


@dataclass(frozen=True)
class MouseEvent(Event):
    kind: MouseKind
    x: int
    y: int
    button: MouseButton = MouseButton.LEFT


@dataclass(frozen=True)
class Resize(Event):
    width: int
    height: int


@dataclass(frozen=True)
class FocusGained(Event):
    pass


@dataclass(frozen=True)
class Close(Event):
    pass


# -- timers ---------------------------------------------------------------


@dataclass(frozen=True)
class Tick(Event):
    kind: str = "auto_refresh"


@dataclass(frozen=True)
class FrameTick(Event):
    pass


@dataclass(frozen=True)
class SequenceTimeout(Event):
    generation: int


# -- completions ----------------------------------------------------------

Continuation = Callable[[str, LazyJJError | None], "Event | list[Event] | None"]


@dataclass(frozen=True)
class CommandCompleted(Event):
    output: str = ""
    error: LazyJJError | None = None
    continuation: Continuation | None = field(default=None, compare=False)
    interactive: bool = False


@dataclass(frozen=True)
class ScriptInstruction(Event):
    kind: str
    payload: tuple = ()


@dataclass(frozen=True)
class ScriptReply(Event):
    output: str = ""
    error: LazyJJError | None = None


# -- intents --------------------------------------------------------------


@dataclass(frozen=True)
class ShowDiff(Event):
    text: str


@dataclass(frozen=True)
class TogglePassword(Event):
    """Open (``prompt`` set) or dismiss (``prompt`` is None) the password prompt."""

    prompt: str | None
    reply: Callable[[str | None], None] | None = field(default=None, compare=False)


@dataclass(frozen=True)
class ShowChoose(Event):
    title: str
    options: tuple[str, ...]


@dataclass(frozen=True)
class ShowInput(Event):
    title: str
    prompt: str = ""


@dataclass(frozen=True)
class ModalResult(Event):
    """Outcome of a choose/input modal; ``value`` is None when cancelled."""

    value: str | None


@dataclass(frozen=True)
class RunScript(Event):
    source: str


@dataclass(frozen=True)
class UpdateRevset(Event):
    revset: str


@dataclass(frozen=True)
class Refresh(Event):
    keep_selection: bool = True


@dataclass(frozen=True)
class SelectionChanged(Event):
    pass


@dataclass(frozen=True)
class ToggleHelp(Event):
    pass


@dataclass(frozen=True)
class ShowPreview(Event):
    visible: bool


@dataclass(frozen=True)
class Flash(Event):
    message: str
    error: bool = False


_HANDLER_NAMES: dict[type[Event], str] = {
    KeyPress: "key",
    MouseEvent: "mouse",
    Resize: "resize",
    FocusGained: "focus_gained",
    Close: "close",
    Tick: "tick",
    FrameTick: "frame_tick",
    SequenceTimeout: "sequence_timeout",
    CommandCompleted: "command_completed",
    ScriptInstruction: "script_instruction",
    ScriptReply: "script_reply",
    ShowDiff: "show_diff",
    TogglePassword: "toggle_password",
    ShowChoose: "show_choose",
    ShowInput: "show_input",
    ModalResult: "modal_result",
    RunScript: "run_script",
    UpdateRevset: "update_revset",
    Refresh: "refresh",
    SelectionChanged: "selection_changed",
    ToggleHelp: "toggle_help",
    ShowPreview: "show_preview",
    Flash: "flash",
}

EVENT_TYPES: tuple[type[Event], ...] = tuple(_HANDLER_NAMES)


def handler_name(event: Event) -> str:
    """Return the handler suffix for ``event``; unknown variants are an error."""
    try:
        return _HANDLER_NAMES[type(event)]
    except KeyError:
        raise TypeError(f"unhandled event variant: {type(event).__name__}") from None


def is_input_event(event: Event) -> bool:
    return isinstance(event, (KeyPress, MouseEvent))


def as_event_list(result: Event | list[Event] | None) -> list[Event]:
    if result is None:
        return []
    if isinstance(result, Event):
        return [result]
    return list(result)
