"""CLI argument, default-path and logging setup tests."""

from __future__ import annotations

import io
import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyjj import cli


class CliMainTests(unittest.TestCase):
    def test_main_defaults_to_current_working_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            previous_cwd = Path.cwd()
            try:
                os.chdir(root)
                with mock.patch("lazyjj.cli.run_app") as run_app:
                    cli.main([])
            finally:
                os.chdir(previous_cwd)

        run_app.assert_called_once_with(root, revset=None, period=None)

    def test_main_passes_revset_and_period(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("lazyjj.cli.run_app") as run_app:
                cli.main([tmp, "-r", "trunk()..@", "--period", "30"])

        run_app.assert_called_once_with(Path(tmp).resolve(), revset="trunk()..@", period=30)

    def test_missing_path_exits(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("lazyjj.cli.run_app") as run_app, self.assertRaises(SystemExit):
                cli.main([str(Path(tmp) / "missing")])

        run_app.assert_not_called()

    def test_negative_period_is_rejected(self) -> None:
        with mock.patch("sys.stderr", io.StringIO()), self.assertRaises(SystemExit):
            cli.build_parser().parse_args(["--period", "-1"])

    def test_log_level_is_case_insensitive(self) -> None:
        args = cli.build_parser().parse_args(["--log-level", "debug"])

        self.assertEqual(args.log_level, "DEBUG")

    def test_config_flag_opens_editor_and_skips_app(self) -> None:
        with (
            mock.patch("lazyjj.cli.ensure_config_file", return_value=Path("/tmp/lazyjj.json")),
            mock.patch("lazyjj.cli.default_editor", return_value="nano"),
            mock.patch("lazyjj.cli.subprocess.run") as run,
            mock.patch("lazyjj.cli.run_app") as run_app,
        ):
            cli.main(["--config"])

        run.assert_called_once_with(["nano", "/tmp/lazyjj.json"], check=False)
        run_app.assert_not_called()

    def test_config_flag_without_editor_exits(self) -> None:
        with (
            mock.patch("lazyjj.cli.ensure_config_file", return_value=Path("/tmp/lazyjj.json")),
            mock.patch("lazyjj.cli.default_editor", return_value=None),
            self.assertRaises(SystemExit),
        ):
            cli.main(["--config"])


class ConfigureLoggingTests(unittest.TestCase):
    def test_log_file_configures_file_logging(self) -> None:
        with mock.patch("lazyjj.cli.logging.basicConfig") as basic_config:
            cli.configure_logging(Path("/tmp/lazyjj.log"), "WARNING")

        basic_config.assert_called_once_with(
            filename="/tmp/lazyjj.log", level=logging.WARNING, format=cli.LOG_FORMAT
        )

    def test_without_log_file_nothing_reaches_stderr(self) -> None:
        with mock.patch("lazyjj.cli.logging.basicConfig") as basic_config:
            cli.configure_logging(None, "INFO")

        basic_config.assert_not_called()


if __name__ == "__main__":
    unittest.main()
