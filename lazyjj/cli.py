"""Command-line front door for lazyjj.

Parses options, sets up optional file logging and either opens the config
file in an editor or starts the interactive front end.
"""

from __future__ import annotations

import argparse
import logging
import subprocess
from pathlib import Path

from .runtime import run_app
from .runtime.config import default_editor, ensure_config_file

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _non_negative_int(value: str) -> int:
    """argparse type for non-negative integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lazyjj", description="Terminal front end for the jj version control system.")
    parser.add_argument("path", nargs="?", default=None, help="Repository path. Defaults to current directory.")
    parser.add_argument("-r", "--revset", default=None, help="Revset to show instead of the configured default.")
    parser.add_argument(
        "--period",
        type=_non_negative_int,
        default=None,
        metavar="SECONDS",
        help="Auto-refresh interval in seconds (0 disables).",
    )
    parser.add_argument("--config", action="store_true", help="Open the config file in $EDITOR and exit.")
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to this file.")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS, type=str.upper, help="Log level for --log-file.")
    return parser


def configure_logging(log_file: Path | None, level: str) -> None:
    """Log to ``log_file`` when given; otherwise stay silent.

    The terminal belongs to the TUI, so logs never go to stderr.
    """
    if log_file is None:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    logging.basicConfig(filename=str(log_file), level=getattr(logging, level), format=LOG_FORMAT)


def edit_config() -> None:
    path = ensure_config_file()
    editor = default_editor()
    if editor is None:
        raise SystemExit(f"No editor found; edit {path} manually.")
    subprocess.run([editor, str(path)], check=False)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch lazyjj."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, args.log_level)

    if args.config:
        edit_config()
        return

    path = Path(args.path) if args.path else Path.cwd()
    if not path.is_dir():
        raise SystemExit(f"Path not found: {path}")
    run_app(path.resolve(), revset=args.revset, period=args.period)


if __name__ == "__main__":
    main()
