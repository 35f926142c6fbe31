"""Error kinds that cross component boundaries.

None of these are allowed to terminate the event loop: they are carried as
payloads of completion events and surfaced as flash notifications.
"""

from __future__ import annotations


class LazyJJError(Exception):
    """Base class for recoverable front-end errors."""


class CommandError(LazyJJError):
    """An external command exited non-zero or could not be spawned."""

    def __init__(self, args: tuple[str, ...], returncode: int | None, stderr: str = "") -> None:
        self.command = tuple(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(self._describe())

    def _describe(self) -> str:
        name = " ".join(self.command[:3]) or "<empty command>"
        detail = self.stderr.strip().splitlines()
        reason = detail[-1] if detail else ""
        if self.returncode is None:
            return f"failed to run {name}: {reason}".rstrip(": ")
        if reason:
            return f"{name} exited with {self.returncode}: {reason}"
        return f"{name} exited with {self.returncode}"


class ConfigValidationError(LazyJJError):
    """A configuration value is outside its enumerated set."""

    def __init__(self, option: str, value: object, allowed: tuple[str, ...]) -> None:
        self.option = option
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"invalid value for {option!r}: {value!r} (expected one of: {', '.join(allowed)})"
        )


class ScriptError(LazyJJError):
    """A script failed to compile or raised while running."""
