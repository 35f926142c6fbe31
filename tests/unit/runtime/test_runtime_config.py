"""Tests for JSON config loading, defaults and option validation."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyjj.errors import ConfigValidationError
from lazyjj.runtime import config as config_mod
from lazyjj.runtime.config import (
    DiffShow,
    PreviewPosition,
    build_config,
    ensure_config_file,
    get_diff_show,
    get_preview_position,
    load_config,
)


class LoadConfigTests(unittest.TestCase):
    def test_missing_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            with mock.patch.object(config_mod, "CONFIG_PATH", path):
                self.assertEqual(load_config(), {})
                config = build_config()

        self.assertEqual(config.oplog_limit, 200)
        self.assertEqual(config.git_default_remote, "origin")
        self.assertEqual(config.keymap.chords("quit"), (("q",),))

    def test_malformed_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            with mock.patch.object(config_mod, "CONFIG_PATH", path):
                self.assertEqual(load_config(), {})

    def test_values_are_read_from_file(self) -> None:
        data = {
            "revisions": {"revset": "trunk()..@", "limit": 50},
            "ui": {"auto_refresh_interval": 5, "sequence_timeout_ms": 400},
            "git": {"default_remote": "upstream"},
            "keys": {"quit": ["ctrl+q"]},
        }
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps(data), encoding="utf-8")
            with mock.patch.object(config_mod, "CONFIG_PATH", path):
                config = build_config()

        self.assertEqual(config.default_revset, "trunk()..@")
        self.assertEqual(config.log_limit, 50)
        self.assertEqual(config.auto_refresh_interval, 5)
        self.assertAlmostEqual(config.sequence_timeout_seconds, 0.4)
        self.assertEqual(config.git_default_remote, "upstream")
        self.assertEqual(config.keymap.chords("quit"), (("CTRL_Q",),))
        self.assertEqual(config.keymap.chords("help"), (("?",),))

    def test_ensure_config_file_creates_empty_object(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "config.json"
            with mock.patch.object(config_mod, "CONFIG_PATH", path):
                created = ensure_config_file()
                self.assertEqual(json.loads(created.read_text(encoding="utf-8")), {})


class BuildConfigTests(unittest.TestCase):
    def test_wrong_types_fall_back_per_key(self) -> None:
        config = build_config(
            {
                "preview": {"width_percentage": 150, "show_at_start": "yes", "revision_command": []},
                "oplog": {"limit": "many"},
                "ui": {"auto_refresh_interval": True},
            }
        )

        self.assertEqual(config.preview.width_percentage, 50.0)
        self.assertFalse(config.preview.show_at_start)
        self.assertEqual(config.preview.revision_command[0], "show")
        self.assertEqual(config.oplog_limit, 200)
        self.assertEqual(config.auto_refresh_interval, 0)

    def test_blank_remote_falls_back_to_origin(self) -> None:
        self.assertEqual(build_config({"git": {"default_remote": "  "}}).git_default_remote, "origin")

    def test_custom_commands_keep_only_tables(self) -> None:
        config = build_config({"custom_commands": {"ok": {"args": ["log"]}, "bad": "nope"}})

        self.assertEqual(list(config.custom_commands), ["ok"])


class OptionValidationTests(unittest.TestCase):
    def test_valid_enumerations(self) -> None:
        config = build_config({"preview": {"position": "bottom"}, "diff": {"show": "interactive"}})

        self.assertIs(get_preview_position(config), PreviewPosition.BOTTOM)
        self.assertIs(get_diff_show(config), DiffShow.INTERACTIVE)

    def test_invalid_preview_position_raises_validation_error(self) -> None:
        config = build_config({"preview": {"position": "left"}})

        with self.assertRaises(ConfigValidationError) as ctx:
            get_preview_position(config)

        self.assertEqual(ctx.exception.option, "preview.position")
        self.assertIn("auto", str(ctx.exception))

    def test_invalid_diff_show_raises_validation_error(self) -> None:
        with self.assertRaises(ConfigValidationError):
            get_diff_show(build_config({"diff": {"show": "pager"}}))


if __name__ == "__main__":
    unittest.main()
