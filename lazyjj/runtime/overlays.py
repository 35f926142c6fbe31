"""Overlay slots and the precedence tables that decide who is on top.

Each slot holds at most one surface. Re-opening the diff or stacked slot
replaces the previous occupant; re-opening the password prompt with the same
prompt keeps the one already shown. ``Close`` dismisses exactly one overlay,
the first open one in ``CLOSE_PRECEDENCE``.
"""

from __future__ import annotations

from enum import Enum

from ..views.base import Surface
from ..views.flash import FlashView
from ..views.password import PasswordView


class OverlayKind(str, Enum):
    LEADER = "leader"
    DIFF = "diff"
    PASSWORD = "password"
    STACKED_MODAL = "stacked"
    OPLOG = "oplog"
    SEQUENCE_OVERLAY = "sequence"
    FLASH_GROUP = "flash"


CLOSE_PRECEDENCE: tuple[OverlayKind, ...] = (
    OverlayKind.LEADER,
    OverlayKind.DIFF,
    OverlayKind.STACKED_MODAL,
    OverlayKind.OPLOG,
)

# Hit-test order for mouse events, topmost first. "primary" is the op-log
# when open and the revision log otherwise.
MOUSE_Z_ORDER: tuple[str, ...] = ("stacked", "diff", "primary", "preview")


class OverlaySlots:
    def __init__(self, flash: FlashView | None = None) -> None:
        self.leader: Surface | None = None
        self.diff: Surface | None = None
        self.password: PasswordView | None = None
        self.stacked: Surface | None = None
        self.oplog: Surface | None = None
        self.sequence: Surface | None = None
        self.flash = flash if flash is not None else FlashView()

    def get(self, kind: OverlayKind) -> Surface | None:
        return getattr(self, kind.value)

    def is_open(self, kind: OverlayKind) -> bool:
        return self.get(kind) is not None

    def open_leader(self, view: Surface) -> None:
        self.leader = view

    def close_leader(self) -> None:
        self.leader = None

    def open_diff(self, view: Surface) -> None:
        self.diff = view

    def close_diff(self) -> None:
        self.diff = None

    def open_password(self, view: PasswordView) -> bool:
        """Show ``view`` unless a prompt with the same text is already up."""
        if self.password is not None and self.password.prompt == view.prompt:
            return False
        self.password = view
        return True

    def close_password(self) -> None:
        self.password = None

    def open_stacked(self, view: Surface) -> None:
        self.stacked = view

    def close_stacked(self) -> None:
        self.stacked = None

    def open_oplog(self, view: Surface) -> None:
        self.oplog = view

    def close_oplog(self) -> None:
        self.oplog = None

    def open_sequence(self, view: Surface) -> None:
        self.sequence = view

    def close_sequence(self) -> None:
        self.sequence = None

    def close_one(self) -> OverlayKind | None:
        """Dismiss the topmost closable overlay and report which one."""
        for kind in CLOSE_PRECEDENCE:
            if self.get(kind) is not None:
                setattr(self, kind.value, None)
                return kind
        return None

    def capturing(self) -> Surface | None:
        """The open overlay that takes every key and mouse event, if any."""
        for kind in CLOSE_PRECEDENCE:
            surface = self.get(kind)
            if surface is not None and surface.captures_input:
                return surface
        return None

    def is_safe_to_quit(self, primary_in_normal_mode: bool) -> bool:
        if self.stacked is not None or self.oplog is not None:
            return False
        return primary_in_normal_mode
