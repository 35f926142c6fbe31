"""The single authoritative UI state mutated by the router."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..custom_commands import CustomCommand, load_custom_commands
from ..errors import LazyJJError
from ..input.sequence import SequenceBinding, SequenceMatcher
from ..selection import SelectedItem
from ..views.base import Surface
from ..views.flash import FlashView
from ..views.preview import PreviewView
from ..views.revisions import RevisionsView
from ..views.revset import RevsetView
from ..views.status import StatusView
from .config import Config
from .overlays import OverlaySlots
from .scripting import ScriptBridge, ScriptEngine

CUSTOM_ACTION_PREFIX = "custom:"


class LoopMode(str, Enum):
    NORMAL = "normal"
    DELEGATED = "delegated"
    RUNNING_SCRIPT = "running_script"


@dataclass(eq=False)
class UIState:
    config: Config
    revisions: RevisionsView
    preview: PreviewView
    revset: RevsetView
    status: StatusView
    overlays: OverlaySlots
    sequence: SequenceMatcher
    scripts: ScriptBridge
    custom_commands: tuple[CustomCommand, ...] = ()
    width: int = 80
    height: int = 24
    error: LazyJJError | None = None
    drag_target: str | None = None
    mode: LoopMode = LoopMode.NORMAL

    @property
    def flash(self) -> FlashView:
        return self.overlays.flash

    def primary(self) -> Surface:
        """The op-log while it is open, otherwise the revision log."""
        return self.overlays.oplog if self.overlays.oplog is not None else self.revisions

    def selected_item(self) -> SelectedItem | None:
        primary = self.primary()
        selected = getattr(primary, "selected_item", None)
        return selected() if selected is not None else None

    def surface_by_id(self, surface_id: str) -> Surface | None:
        """Resolve a surface id; ``None`` when that surface is gone."""
        if surface_id == "primary":
            return self.primary()
        if surface_id == "revisions":
            return self.revisions
        if surface_id == "preview":
            return self.preview if self.preview.visible else None
        if surface_id in ("revset", "status"):
            return getattr(self, surface_id)
        if surface_id in ("leader", "diff", "password", "stacked", "oplog", "sequence", "flash"):
            return getattr(self.overlays, surface_id)
        return None

    def is_safe_to_quit(self) -> bool:
        return self.overlays.is_safe_to_quit(self.revisions.in_normal_mode)

    def mode_name(self) -> str:
        overlays = self.overlays
        for surface in (overlays.password, overlays.leader, overlays.diff, overlays.stacked):
            if surface is not None and surface.mode_name:
                return surface.mode_name
        if self.revset.editing:
            return "revset"
        if self.status.focused:
            return "search"
        return self.primary().mode_name


def _custom_applicable(state_ref: Callable[[], UIState], command: CustomCommand) -> Callable[[], bool]:
    return lambda: command.is_applicable_to(state_ref().selected_item())


def build_state(
    config: Config,
    *,
    script_engine: ScriptEngine | None = None,
    monotonic: Callable[[], float] = time.monotonic,
) -> UIState:
    """Create the views, the sequence matcher and the state that owns them."""
    state: UIState

    def report_error(error: LazyJJError | None) -> None:
        state.error = error

    def search(query: str):
        return state.revisions.search(query)

    keymap = config.keymap
    commands = load_custom_commands(config)
    bindings = [SequenceBinding(action, chord) for action, chord in keymap.sequences()]
    bindings.extend(
        SequenceBinding(
            CUSTOM_ACTION_PREFIX + command.name,
            command.key_sequence,
            _custom_applicable(lambda: state, command),
        )
        for command in commands
        if command.key_sequence
    )
    state = UIState(
        config=config,
        revisions=RevisionsView(config, report_error),
        preview=PreviewView(keymap, config.preview),
        revset=RevsetView(config.default_revset),
        status=StatusView(keymap, search),
        overlays=OverlaySlots(FlashView(monotonic)),
        sequence=SequenceMatcher(bindings, config.sequence_timeout_seconds, monotonic),
        scripts=ScriptBridge(script_engine),
        custom_commands=commands,
    )
    return state
