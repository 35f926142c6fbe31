"""Terminal session control for lazyjj.

The controller owns the tty while the TUI runs: it enters raw alternate-screen
mode, turns on SGR mouse and focus reporting, and paints composed frames row
by row. An interactive ``jj`` command gets the terminal back through
``disable_tui_mode``/``enable_tui_mode``.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

ALT_SCREEN_ON = b"\x1b[?1049h\x1b[?25l"
ALT_SCREEN_OFF = b"\x1b[?25h\x1b[?1049l"
# 1000 press/release, 1002 motion while a button is held, 1006 SGR encoding.
MOUSE_ON = b"\x1b[?1000h\x1b[?1002h\x1b[?1006h"
MOUSE_OFF = b"\x1b[?1000l\x1b[?1002l\x1b[?1006l"
FOCUS_ON = b"\x1b[?1004h"
FOCUS_OFF = b"\x1b[?1004l"


class TerminalController:
    """Raw-mode lifecycle plus incremental frame output."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._mouse_enabled = False
        self._painted_rows: list[str] | None = None

    def _write(self, payload: bytes) -> None:
        os.write(self.stdout_fd, payload)

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with mouse and focus reporting enabled."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        self._write(ALT_SCREEN_ON + MOUSE_ON + FOCUS_ON)
        self._mouse_enabled = True
        # whatever was on screen before is unknown; repaint everything
        self._painted_rows = None

    def disable_tui_mode(self) -> None:
        """Leave alternate-screen mode and restore the saved tty state."""
        self._write(FOCUS_OFF + MOUSE_OFF + ALT_SCREEN_OFF)
        self._mouse_enabled = False
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def set_mouse_reporting(self, enabled: bool) -> None:
        """Switch mouse reporting on or off; repeated calls write nothing."""
        enabled = bool(enabled)
        if enabled == self._mouse_enabled:
            return
        self._write(MOUSE_ON if enabled else MOUSE_OFF)
        self._mouse_enabled = enabled

    def reenable_mouse_reporting(self) -> None:
        """Send the mouse modes again; some terminals drop them after a focus change."""
        self._write(MOUSE_ON)
        self._mouse_enabled = True

    def size(self) -> tuple[int, int]:
        """Return the terminal size as ``(columns, lines)``."""
        term = shutil.get_terminal_size((80, 24))
        return term.columns, term.lines

    def write_frame(self, frame: str) -> None:
        """Paint ``frame``, rewriting only the rows that differ from the last one."""
        rows = frame.split("\n")
        previous = self._painted_rows
        if previous == rows:
            return
        out: list[str] = []
        for index, row in enumerate(rows):
            if previous is not None and index < len(previous) and previous[index] == row:
                continue
            out.append(f"\x1b[{index + 1};1H{row}\x1b[0m\x1b[K")
        if previous is None:
            out.append(f"\x1b[{len(rows) + 1};1H\x1b[J")
        else:
            out.extend(f"\x1b[{index + 1};1H\x1b[K" for index in range(len(rows), len(previous)))
        self._painted_rows = rows
        self._write("".join(out).encode("utf-8", errors="replace"))

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that always restores the terminal on exit."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()
