"""Persistent JSON config loaded once into an immutable ``Config`` value.

The file lives under the platform config directory. Reading is defensive:
missing, unreadable or malformed files yield defaults, and values of the
wrong JSON type are ignored key by key. Enumerated options are kept as raw
strings and validated where they are used, so an invalid value is reported
and replaced by its documented default instead of aborting startup.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from platformdirs import user_config_dir

from ..errors import ConfigValidationError
from ..input.key_registry import Keymap

logger = logging.getLogger(__name__)

APP_NAME = "lazyjj"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_KEYS: dict[str, list[object]] = {
    "up": ["UP", "k"],
    "down": ["DOWN", "j"],
    "page_up": ["PGUP", "CTRL_U"],
    "page_down": ["PGDOWN", "CTRL_D"],
    "apply": ["ENTER"],
    "cancel": ["ESC"],
    "select": [" "],
    "quit": ["q"],
    "suspend": ["CTRL_Z"],
    "help": ["?"],
    "refresh": ["CTRL_R"],
    "revset": ["L"],
    "undo": ["u"],
    "redo": ["U"],
    "details": ["l"],
    "details.close": ["h"],
    "details.split": ["s"],
    "details.split_parallel": ["S"],
    "details.squash": ["z"],
    "details.restore": ["r"],
    "details.absorb": ["A"],
    "details.revisions_changing_file": ["*"],
    "diff": ["d"],
    "quick_search": ["/"],
    "oplog.mode": ["o"],
    "git.mode": ["g"],
    "bookmark.mode": ["b"],
    "preview.mode": ["p"],
    "preview.toggle_bottom": ["P"],
    "preview.expand": ["]"],
    "preview.shrink": ["["],
    "preview.scroll_up": ["CTRL_P"],
    "preview.scroll_down": ["CTRL_N"],
    "custom_commands": ["x"],
    "leader": ["\\"],
}


class PreviewPosition(str, Enum):
    AUTO = "auto"
    BOTTOM = "bottom"
    RIGHT = "right"


class DiffShow(str, Enum):
    DIFF = "diff"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class PreviewConfig:
    position: str = PreviewPosition.AUTO.value
    width_percentage: float = 50.0
    width_increment_percentage: float = 5.0
    show_at_start: bool = False
    revision_command: tuple[str, ...] = ("show", "--color", "always", "-r", "$change_id")
    oplog_command: tuple[str, ...] = ("op", "show", "$operation_id", "--color", "always")
    file_command: tuple[str, ...] = ("diff", "--color", "always", "-r", "$change_id", "$file")


@dataclass(frozen=True)
class Config:
    keymap: Keymap = field(default_factory=lambda: Keymap.from_mapping(DEFAULT_KEYS))
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    default_revset: str = ""
    log_limit: int = 0
    oplog_limit: int = 200
    auto_refresh_interval: int = 0
    sequence_timeout_ms: int = 1000
    diff_show: str = DiffShow.DIFF.value
    git_default_remote: str = "origin"
    custom_commands: Mapping[str, Mapping[str, object]] = field(default_factory=lambda: MappingProxyType({}))
    leader: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def sequence_timeout_seconds(self) -> float:
        return max(1, self.sequence_timeout_ms) / 1000.0


def load_config() -> dict[str, object]:
    """Load the persisted JSON object, or ``{}`` when missing or malformed."""
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _section(data: Mapping[str, object], name: str) -> Mapping[str, object]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _str(section: Mapping[str, object], key: str, default: str) -> str:
    value = section.get(key)
    return value if isinstance(value, str) else default


def _int(section: Mapping[str, object], key: str, default: int) -> int:
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return max(0, value)


def _percent(section: Mapping[str, object], key: str, default: float) -> float:
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value <= 0 or value >= 100:
        return default
    return float(value)


def _bool(section: Mapping[str, object], key: str, default: bool) -> bool:
    value = section.get(key)
    return value if isinstance(value, bool) else default


def _args(section: Mapping[str, object], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = section.get(key)
    if isinstance(value, list) and value and all(isinstance(item, str) for item in value):
        return tuple(value)
    return default


def _frozen_tables(value: object) -> Mapping[str, Mapping[str, object]]:
    if not isinstance(value, dict):
        return MappingProxyType({})
    tables = {
        str(name): MappingProxyType(dict(table))
        for name, table in value.items()
        if isinstance(table, dict)
    }
    return MappingProxyType(tables)


def build_config(data: Mapping[str, object] | None = None) -> Config:
    """Merge a raw config object over the defaults."""
    if data is None:
        data = load_config()
    defaults = PreviewConfig()
    preview = _section(data, "preview")
    ui = _section(data, "ui")
    revisions = _section(data, "revisions")
    return Config(
        keymap=Keymap.from_mapping(_section(data, "keys"), base=Keymap.from_mapping(DEFAULT_KEYS)),
        preview=PreviewConfig(
            position=_str(preview, "position", defaults.position),
            width_percentage=_percent(preview, "width_percentage", defaults.width_percentage),
            width_increment_percentage=_percent(
                preview, "width_increment_percentage", defaults.width_increment_percentage
            ),
            show_at_start=_bool(preview, "show_at_start", defaults.show_at_start),
            revision_command=_args(preview, "revision_command", defaults.revision_command),
            oplog_command=_args(preview, "oplog_command", defaults.oplog_command),
            file_command=_args(preview, "file_command", defaults.file_command),
        ),
        default_revset=_str(revisions, "revset", ""),
        log_limit=_int(revisions, "limit", 0),
        oplog_limit=_int(_section(data, "oplog"), "limit", 200),
        auto_refresh_interval=_int(ui, "auto_refresh_interval", 0),
        sequence_timeout_ms=_int(ui, "sequence_timeout_ms", 1000),
        diff_show=_str(_section(data, "diff"), "show", DiffShow.DIFF.value),
        git_default_remote=_str(_section(data, "git"), "default_remote", "").strip() or "origin",
        custom_commands=_frozen_tables(data.get("custom_commands")),
        leader=MappingProxyType(dict(_section(data, "leader"))),
    )


def get_preview_position(config: Config) -> PreviewPosition:
    """Return the configured preview position or raise ``ConfigValidationError``."""
    try:
        return PreviewPosition(config.preview.position)
    except ValueError:
        raise ConfigValidationError(
            "preview.position",
            config.preview.position,
            tuple(p.value for p in PreviewPosition),
        ) from None


def get_diff_show(config: Config) -> DiffShow:
    try:
        return DiffShow(config.diff_show)
    except ValueError:
        raise ConfigValidationError("diff.show", config.diff_show, tuple(d.value for d in DiffShow)) from None


def default_editor() -> str | None:
    """Return ``$EDITOR``/``$VISUAL`` or the first common editor on PATH."""
    editor = os.environ.get("EDITOR") or os.environ.get("VISUAL")
    if editor:
        return editor
    for candidate in ("nano", "vim", "vi", "notepad.exe"):
        path = shutil.which(candidate)
        if path is not None:
            return path
    return None


def ensure_config_file() -> Path:
    """Create an empty JSON config file if none exists and return its path."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text("{}\n", encoding="utf-8")
    return CONFIG_PATH
