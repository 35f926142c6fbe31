"""Pygments-backed colouring for diff text that arrives without ANSI styling."""

from __future__ import annotations

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import DiffLexer
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"

_FORMATTERS: dict[str, TerminalFormatter] = {}


def _formatter_for_style(style: str) -> TerminalFormatter:
    formatter = _FORMATTERS.get(style)
    if formatter is not None:
        return formatter
    try:
        formatter = TerminalFormatter(style=style)
    except ClassNotFound:
        formatter = TerminalFormatter(style=DEFAULT_STYLE)
    _FORMATTERS[style] = formatter
    return formatter


def colorize_diff(text: str, style: str = DEFAULT_STYLE) -> str:
    """Return ``text`` with diff highlighting unless it is already styled."""
    if not text or "\x1b[" in text:
        return text
    rendered = highlight(text, DiffLexer(), _formatter_for_style(style))
    if not text.endswith("\n") and rendered.endswith("\n"):
        rendered = rendered[:-1]
    return rendered
