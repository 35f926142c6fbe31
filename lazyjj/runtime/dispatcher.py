"""Run external commands in the three modes the router can ask for.

Immediate commands block the loop and return their result. Interactive
commands hand the terminal over to the child process and take it back
afterwards. Async commands run on a daemon worker that posts exactly one
``CommandCompleted`` back to the event queue, whatever happens to it.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..errors import CommandError
from ..events import CommandCompleted, Continuation, Event

logger = logging.getLogger(__name__)


class TerminalHandover(Protocol):
    def disable_tui_mode(self) -> None: ...

    def enable_tui_mode(self) -> None: ...


@dataclass(frozen=True)
class CommandResult:
    output: str = ""
    error: CommandError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CommandDispatcher:
    def __init__(
        self,
        post: Callable[[Event], None],
        *,
        cwd: Path | None = None,
        terminal: TerminalHandover | None = None,
    ) -> None:
        self._post = post
        self._cwd = cwd
        self._terminal = terminal
        self._lock = threading.Lock()
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def run_immediate(self, args: tuple[str, ...], stdin: str | None = None) -> CommandResult:
        """Run ``args`` to completion, capturing stdout and stderr."""
        logger.debug("run %s", args)
        try:
            completed = subprocess.run(
                list(args),
                cwd=self._cwd,
                input=stdin,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as exc:
            error = CommandError(args, None, str(exc))
            logger.info("%s", error)
            return CommandResult(error=error)
        if completed.returncode != 0:
            error = CommandError(args, completed.returncode, completed.stderr)
            logger.info("%s", error)
            return CommandResult(output=completed.stdout, error=error)
        return CommandResult(output=completed.stdout)

    def run_interactive(self, args: tuple[str, ...]) -> CommandResult:
        """Run ``args`` attached to the terminal; the TUI is torn down meanwhile."""
        logger.debug("run interactive %s", args)
        if self._terminal is not None:
            self._terminal.disable_tui_mode()
        try:
            try:
                completed = subprocess.run(list(args), cwd=self._cwd, check=False)
            except OSError as exc:
                error = CommandError(args, None, str(exc))
                logger.info("%s", error)
                return CommandResult(error=error)
        finally:
            if self._terminal is not None:
                self._terminal.enable_tui_mode()
        if completed.returncode != 0:
            error = CommandError(args, completed.returncode)
            logger.info("%s", error)
            return CommandResult(error=error)
        return CommandResult()

    def run_async(self, args: tuple[str, ...], continuation: Continuation | None = None) -> threading.Thread:
        """Start ``args`` on a worker; its completion is posted as one event."""
        with self._lock:
            self._in_flight += 1

        def worker() -> None:
            result = CommandResult(error=CommandError(args, None, "worker did not finish"))
            try:
                result = self.run_immediate(args)
            finally:
                with self._lock:
                    self._in_flight -= 1
                self._post(completion_event(result, continuation))

        thread = threading.Thread(target=worker, name="lazyjj-command", daemon=True)
        thread.start()
        return thread


def completion_event(
    result: CommandResult,
    continuation: Continuation | None = None,
    *,
    interactive: bool = False,
) -> CommandCompleted:
    return CommandCompleted(
        output=result.output,
        error=result.error,
        continuation=continuation,
        interactive=interactive,
    )


__all__ = ["CommandDispatcher", "CommandResult", "TerminalHandover", "completion_event"]
