"""Main interactive event loop.

All producers feed one queue: the input reader thread, timers armed by
``Schedule`` effects, async command workers and the loop itself when it
notices a new terminal size. The loop pops one event at a time, passes it
through the render cache to the router, carries out the returned effects and
redraws when a frame is due.
"""

from __future__ import annotations

import logging
import os
import signal
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Protocol

from ..effects import CommandMode, EnableMouse, Effect, Post, Quit, RunCommand, Schedule, Suspend
from ..events import Event, Resize
from ..input.reader import read_event
from .dispatcher import CommandDispatcher, completion_event
from .state import LoopMode, UIState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoopTiming:
    input_poll_ms: int = 50
    idle_poll_seconds: float = 0.1
    pause_ack_seconds: float = 0.5


class UpdateTarget(Protocol):
    state: UIState

    def update(self, event: Event) -> list[Effect]: ...

    def view(self) -> str: ...


class Screen(Protocol):
    def raw_mode(self): ...

    def size(self) -> tuple[int, int]: ...

    def write_frame(self, frame: str) -> None: ...

    def disable_tui_mode(self) -> None: ...

    def enable_tui_mode(self) -> None: ...

    def reenable_mouse_reporting(self) -> None: ...


class InputReader:
    """Daemon thread decoding terminal input into events.

    ``pause`` parks the thread so a child process can own stdin.
    """

    def __init__(
        self,
        fd: int,
        post: Callable[[Event], None],
        poll_ms: int = 50,
        read: Callable[[int, int], Event | None] = read_event,
    ) -> None:
        self._fd = fd
        self._post = post
        self._poll_ms = poll_ms
        self._read = read
        self._stop = threading.Event()
        self._paused = threading.Event()
        self._parked = threading.Event()
        self._resumed = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start reading on a daemon thread."""
        self._thread = threading.Thread(target=self._run, name="lazyjj-input", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set():
            if self._paused.is_set():
                self._parked.set()
                self._resumed.wait()
                continue
            try:
                event = self._read(self._fd, self._poll_ms)
            except OSError:
                logger.exception("input reader stopped")
                return
            if event is not None:
                self._post(event)

    def pause(self, timeout: float = 0.5) -> None:
        """Park the reader so a child process can own the terminal."""
        self._resumed.clear()
        self._parked.clear()
        self._paused.set()
        if self._thread is not None and self._thread.is_alive():
            self._parked.wait(timeout)

    def resume(self) -> None:
        """Let a paused reader continue."""
        self._paused.clear()
        self._resumed.set()

    def stop(self) -> None:
        """Ask the thread to exit after its current poll."""
        self._stop.set()
        self.resume()


class MainLoop:
    def __init__(
        self,
        target: UpdateTarget,
        dispatcher: CommandDispatcher,
        screen: Screen,
        events: Queue[Event],
        *,
        reader: InputReader | None = None,
        timing: LoopTiming = LoopTiming(),
        suspend_process: Callable[[], None] | None = None,
    ) -> None:
        self.target = target
        self.dispatcher = dispatcher
        self.screen = screen
        self.events = events
        self.reader = reader
        self.timing = timing
        self._suspend_process = suspend_process or _send_sigtstp
        self._timers: list[threading.Timer] = []
        self._size: tuple[int, int] | None = None
        self.running = False

    def post(self, event: Event) -> None:
        """Queue ``event``; safe to call from any thread."""
        self.events.put(event)

    # -- effects ----------------------------------------------------------

    def apply(self, effects: Iterable[Effect]) -> None:
        """Carry out effects returned by the update function."""
        for effect in effects:
            if isinstance(effect, RunCommand):
                self._run_command(effect)
            elif isinstance(effect, Schedule):
                self._schedule(effect)
            elif isinstance(effect, Post):
                self.post(effect.event)
            elif isinstance(effect, Quit):
                self.running = False
            elif isinstance(effect, Suspend):
                self._suspend()
            elif isinstance(effect, EnableMouse):
                self.screen.reenable_mouse_reporting()
            else:
                raise TypeError(f"unhandled effect: {type(effect).__name__}")

    def _run_command(self, effect: RunCommand) -> None:
        if effect.mode is CommandMode.ASYNC:
            self.dispatcher.run_async(effect.args, effect.continuation)
            return
        if effect.mode is CommandMode.IMMEDIATE:
            result = self.dispatcher.run_immediate(effect.args)
            self.handle(completion_event(result, effect.continuation))
            return
        state = self.target.state
        state.mode = LoopMode.DELEGATED
        if self.reader is not None:
            self.reader.pause(self.timing.pause_ack_seconds)
        try:
            result = self.dispatcher.run_interactive(effect.args)
        finally:
            if self.reader is not None:
                self.reader.resume()
            state.mode = LoopMode.NORMAL
        self._size = None
        self.handle(completion_event(result, effect.continuation, interactive=True))

    def _schedule(self, effect: Schedule) -> None:
        self._timers = [timer for timer in self._timers if timer.is_alive()]
        timer = threading.Timer(max(0.0, effect.delay_seconds), self.post, args=(effect.event,))
        timer.daemon = True
        timer.start()
        self._timers.append(timer)

    def _suspend(self) -> None:
        if self.reader is not None:
            self.reader.pause(self.timing.pause_ack_seconds)
        self.screen.disable_tui_mode()
        try:
            self._suspend_process()
        finally:
            self.screen.enable_tui_mode()
            if self.reader is not None:
                self.reader.resume()
        self._size = None

    # -- loop -------------------------------------------------------------

    def handle(self, event: Event) -> None:
        """Feed one event through update and apply the result."""
        self.apply(self.target.update(event))

    def _check_size(self) -> None:
        size = self.screen.size()
        if size != self._size:
            self._size = size
            self.handle(Resize(*size))

    def run(self, startup: Iterable[Effect] = ()) -> None:
        """Run until a ``Quit`` effect, restoring the terminal on the way out."""
        self.running = True
        with self.screen.raw_mode():
            if self.reader is not None:
                self.reader.start()
            try:
                self._check_size()
                self.apply(startup)
                while self.running:
                    self.screen.write_frame(self.target.view())
                    try:
                        event = self.events.get(timeout=self.timing.idle_poll_seconds)
                    except Empty:
                        event = None
                    self._check_size()
                    if event is not None:
                        self.handle(event)
            finally:
                if self.reader is not None:
                    self.reader.stop()
                for timer in self._timers:
                    timer.cancel()
                self.target.state.scripts.cancel()


def _send_sigtstp() -> None:
    os.kill(os.getpid(), signal.SIGTSTP)
