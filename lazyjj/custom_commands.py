"""User-defined commands from the ``custom_commands`` config table.

Each entry runs either a ``jj`` argument template or a script, and may be
bound to a single key, to a multi-key ``key_sequence`` (recognized by the
sequence matcher) or to nothing (reachable from the custom-commands menu).
Commands are ordered by name; that order also breaks sequence ties.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from . import jj
from .effects import CommandMode, Effect, Post, RunCommand
from .errors import ConfigValidationError, LazyJJError
from .events import Flash, Refresh, RunScript, ShowDiff
from .input.key_registry import Chord, normalize_key_name
from .runtime.config import Config
from .selection import SelectedItem, item_kind, placeholders

logger = logging.getLogger(__name__)

SHOW_OPTIONS = ("none", "diff", "interactive")
APPLICABLE_KINDS = ("any", "revision", "file", "operation")


@dataclass(frozen=True)
class CustomCommand:
    name: str
    args: tuple[str, ...] = ()
    script: str = ""
    key: tuple[str, ...] = ()
    key_sequence: Chord = ()
    show: str = "none"
    applicable_to: str = "any"

    def is_applicable_to(self, item: SelectedItem | None) -> bool:
        if self.applicable_to == "any":
            return True
        return item_kind(item) == self.applicable_to

    def prepare(self, item: SelectedItem | None, *, width: int = 80, revset: str = "") -> list[Effect]:
        """Build the effects that run this command against ``item``."""
        if self.script:
            return [Post(RunScript(self.script))]
        effects: list[Effect] = []
        show = self.show
        if show not in SHOW_OPTIONS:
            error = ConfigValidationError(f"custom_commands.{self.name}.show", show, SHOW_OPTIONS)
            logger.warning("%s", error)
            effects.append(Post(Flash(str(error), error=True)))
            show = "none"

        args = jj.with_executable(
            jj.expand_template(self.args, placeholders(item, width=width, revset=revset))
        )
        if show == "interactive":
            effects.append(RunCommand(args, CommandMode.INTERACTIVE))
        elif show == "diff":
            effects.append(RunCommand(args, CommandMode.ASYNC, _show_output_as_diff))
        else:
            effects.append(RunCommand(args, CommandMode.ASYNC, _refresh_after))
        return effects


def _show_output_as_diff(output: str, error: LazyJJError | None):
    if error is not None:
        return None
    return ShowDiff(output)


def _refresh_after(_output: str, error: LazyJJError | None):
    if error is not None:
        return None
    return Refresh()


def _keys(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return ()
    return tuple(normalize_key_name(k) for k in value if isinstance(k, str) and k)


def parse_custom_command(name: str, table: Mapping[str, object]) -> CustomCommand:
    args = table.get("args")
    applicable_to = table.get("applicable_to", "any")
    if applicable_to not in APPLICABLE_KINDS:
        logger.warning(
            "%s",
            ConfigValidationError(f"custom_commands.{name}.applicable_to", applicable_to, APPLICABLE_KINDS),
        )
        applicable_to = "any"
    script = table.get("script")
    show = table.get("show")
    return CustomCommand(
        name=name,
        args=tuple(a for a in args if isinstance(a, str)) if isinstance(args, list) else (),
        script=script if isinstance(script, str) else "",
        key=_keys(table.get("key")),
        key_sequence=_keys(table.get("key_sequence")),
        show=show if isinstance(show, str) else "none",
        applicable_to=str(applicable_to),
    )


def load_custom_commands(config: Config) -> tuple[CustomCommand, ...]:
    commands = [parse_custom_command(name, table) for name, table in config.custom_commands.items()]
    return tuple(sorted(commands, key=lambda command: command.name))
