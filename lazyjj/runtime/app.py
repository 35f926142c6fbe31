"""Bootstrap: build config, state, router and loop, then run the session."""

from __future__ import annotations

import dataclasses
import logging
import shutil
import sys
from pathlib import Path
from queue import Queue

from .. import jj
from ..events import Event
from .config import Config, build_config
from .dispatcher import CommandDispatcher
from .loop import InputReader, MainLoop
from .render_cache import RenderCache
from .router import Router
from .state import build_state
from .terminal import TerminalController

logger = logging.getLogger(__name__)


def apply_overrides(config: Config, *, revset: str | None = None, period: int | None = None) -> Config:
    """Return ``config`` with command-line overrides applied."""
    changes: dict[str, object] = {}
    if revset is not None:
        changes["default_revset"] = revset
    if period is not None:
        changes["auto_refresh_interval"] = max(0, period)
    return dataclasses.replace(config, **changes) if changes else config


def resolve_repository(path: Path, dispatcher: CommandDispatcher) -> Path:
    """Return the workspace root containing ``path`` or exit with a message."""
    if shutil.which(jj.JJ) is None:
        raise SystemExit("jj not found in PATH")
    result = dispatcher.run_immediate((jj.JJ, "root"))
    if result.error is not None:
        raise SystemExit(f"not a jj repository: {path} ({result.error})")
    return Path(result.output.strip() or path)


def run_app(
    path: Path,
    *,
    revset: str | None = None,
    period: int | None = None,
    config: Config | None = None,
) -> None:
    """Run the interactive front end for the repository at ``path``."""
    if not sys.stdin.isatty() or not sys.stdout.isatty():
        raise SystemExit("lazyjj needs an interactive terminal")
    config = apply_overrides(config or build_config(), revset=revset, period=period)

    events: Queue[Event] = Queue()
    probe = CommandDispatcher(events.put, cwd=path)
    root = resolve_repository(path, probe)
    logger.info("starting in %s", root)

    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    dispatcher = CommandDispatcher(events.put, cwd=root, terminal=terminal)
    state = build_state(config)
    router = Router(state)
    loop = MainLoop(
        RenderCache(router),
        dispatcher,
        terminal,
        events,
        reader=InputReader(sys.stdin.fileno(), events.put),
    )
    loop.run(router.startup())
