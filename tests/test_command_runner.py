from __future__ import annotations

from pathlib import Path
import sys
import tempfile
import unittest
from unittest.mock import patch

from core.command_runner import (
    CommandError,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    merge_environment,
)


class MergeEnvironmentTests(unittest.TestCase):
    def test_overlay_wins_on_collision(self) -> None:
        merged = merge_environment({"MIX_ENV": "prod"}, {"MIX_ENV": "dev", "PATH": "/bin"})
        self.assertEqual(merged, {"MIX_ENV": "prod", "PATH": "/bin"})

    def test_defaults_to_process_environment(self) -> None:
        with patch.dict("os.environ", {"UMBRELLA_TEST_VAR": "1"}):
            merged = merge_environment(None)
        self.assertEqual(merged["UMBRELLA_TEST_VAR"], "1")


class SubprocessCommandRunnerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = SubprocessCommandRunner()

    def test_captures_output_and_applies_overlay(self) -> None:
        with tempfile.TemporaryDirectory() as temp:
            result = self.runner.run(
                [sys.executable, "-c", "import os; print(os.environ['OVERLAY'] + ':' + os.getcwd())"],
                cwd=Path(temp),
                env={"OVERLAY": "yes"},
            )
            self.assertTrue(result.ok)
            self.assertEqual(result.stdout.strip(), f"yes:{Path(temp).resolve()}")

    def test_failure_raises_command_error(self) -> None:
        with self.assertRaises(CommandError) as ctx:
            self.runner.run([sys.executable, "-c", "import sys; sys.exit(3)"])
        self.assertEqual(ctx.exception.result.returncode, 3)
        self.assertIn("exit code 3", str(ctx.exception))

    def test_missing_executable_reports_failure(self) -> None:
        result = self.runner.run(["umbrella-definitely-missing-binary"], check=False)
        self.assertEqual(result.returncode, 127)

    def test_unchecked_failure_returns_result(self) -> None:
        result = self.runner.run([sys.executable, "-c", "import sys; sys.exit(1)"], check=False)
        self.assertFalse(result.ok)

    def test_non_executable_file_reports_failure(self) -> None:
        with tempfile.TemporaryDirectory() as temp:
            script = Path(temp) / "build.sh"
            script.write_text("#!/bin/sh\nexit 0\n")
            script.chmod(0o644)
            result = self.runner.run([str(script)], check=False)
            self.assertEqual(result.returncode, 126)
            with self.assertRaises(CommandError):
                self.runner.run([str(script)], stream=True)

    def test_working_directory_that_is_a_file_reports_failure(self) -> None:
        with tempfile.NamedTemporaryFile() as handle:
            result = self.runner.run([sys.executable, "-c", "pass"], cwd=Path(handle.name), check=False)
        self.assertFalse(result.ok)


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_formats_recorded_commands(self) -> None:
        runner = RecordingCommandRunner()
        runner.run(["mix", "compile"], cwd=Path("/w/ockam/ockam"), env={"MIX_ENV": "prod"}, note="Compile ockam")
        runner.run(["mix", "local.hex", "--force"])
        lines = list(runner.iter_formatted(workspace=Path("/w")))
        self.assertEqual(lines[0], "[dry-run] Compile ockam (cwd=/w/ockam/ockam) MIX_ENV=prod mix compile")
        self.assertEqual(lines[1], "[dry-run] (cwd=/w) mix local.hex --force")

    def test_responder_simulates_failures(self) -> None:
        runner = RecordingCommandRunner(lambda record: 1 if record.command[0] == "false" else 0)
        self.assertTrue(runner.run(["true"]).ok)
        with self.assertRaises(CommandError):
            runner.run(["false"])
        self.assertEqual(runner.run(["false"], check=False).returncode, 1)
        self.assertEqual(len(list(runner.iter_commands())), 3)


if __name__ == "__main__":
    unittest.main()
